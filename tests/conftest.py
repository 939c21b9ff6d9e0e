from pathlib import Path

import pytest


@pytest.fixture
def make_images(tmp_path: Path):
    def _make(count: int) -> list[str]:
        paths = []
        for idx in range(count):
            path = tmp_path / f"photo_{idx:02d}.jpg"
            path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
            paths.append(str(path))
        return paths

    return _make
