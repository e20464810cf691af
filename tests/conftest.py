"""Shared fixtures: a throw-away image set with session and output directories."""

from dataclasses import dataclass
from pathlib import Path

import pytest

from fast_tagger.config import TaggerConfig


DEFAULT_TAGS = "1* cat c*\n2 dog ox\n12 bird b\n"


@dataclass
class Workspace:
    root: Path
    images: Path
    session: Path
    out: Path
    thumbs: Path

    def add_images(self, count: int) -> list[Path]:
        paths = []
        for i in range(1, count + 1):
            path = self.images / f"im{i}.jpg"
            path.write_bytes(b"")
            paths.append(path)
        return paths

    def write_tags(self, content: str = DEFAULT_TAGS) -> Path:
        path = self.session / "tags.txt"
        path.write_text(content, encoding="utf-8")
        return path

    def config(self, **overrides: str) -> TaggerConfig:
        values: dict[str, object] = {
            "IM_DIR": str(self.images),
            "SESSION_DIR": str(self.session),
            "OUT_DIR": str(self.out),
            "THUMBS_DIR": str(self.thumbs),
            "N_ROWS": "2",
            "N_COLS": "2",
        }
        values.update(overrides)
        values["grid"] = values.get("MODE") == "grid"
        return TaggerConfig.model_validate(values)


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    ws = Workspace(
        root=tmp_path,
        images=tmp_path / "images",
        session=tmp_path / "session",
        out=tmp_path / "out",
        thumbs=tmp_path / "thumbs",
    )
    for directory in (ws.images, ws.session, ws.out, ws.thumbs):
        directory.mkdir()
    return ws
