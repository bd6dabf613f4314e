"""Shared fixtures: image trees and shell-script stand-ins for avifenc."""

from __future__ import annotations

import stat
import sys
from pathlib import Path

import pytest

from avif_convertor.config.settings import ConversionSettings
from avif_convertor.services.encoder_invoker import EncoderInvoker

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="fake encoder is a /bin/sh script")

# Every fake records its argument list, then picks input/output from the last two.
_SCRIPT_HEADER = """#!/bin/sh
printf '%s\\n' "$*" >> "{calls}"
if [ "$1" = "--version" ]; then
    echo "Version: 1.1.1 (fake)"
    exit 0
fi
n=$#
eval "out=\\${{$n}}"
eval "in=\\${{$((n - 1))}}"
"""

ENCODER_BODIES = {
    # Writes the first 400 bytes of the input as the "encoded" output.
    "ok": 'head -c 400 "$in" > "$out"\nexit 0\n',
    # Fails like avifenc does on an unreadable input.
    "fail": 'echo "ERROR: Failed to decode image: $in" >&2\nexit 1\n',
    # Exits 0 without writing anything.
    "silent": "exit 0\n",
    # Writes partial output, then blocks until terminated.
    "slow": 'printf partial > "$out"\nexec sleep 30\n',
}


class FakeEncoder:
    def __init__(self, path: Path, calls: Path):
        self.path = path
        self.calls = calls

    def invoker(self) -> EncoderInvoker:
        return EncoderInvoker(binary=str(self.path), encoder_dir=None)

    @property
    def invocations(self) -> list[str]:
        if not self.calls.exists():
            return []
        return [line for line in self.calls.read_text().splitlines() if not line.startswith("--version")]


@pytest.fixture
def make_encoder(tmp_path):
    """Factory writing an executable fake encoder of the given behavior."""

    def _make(kind: str = "ok") -> FakeEncoder:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / f"avifenc-{kind}"
        calls = bin_dir / f"calls-{kind}.txt"
        script.write_text(_SCRIPT_HEADER.format(calls=calls) + ENCODER_BODIES[kind])
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return FakeEncoder(script, calls)

    return _make


@pytest.fixture
def image_tree(tmp_path):
    """
    photos/
        a.png
        b.txt
        sub/c.jpg
    """
    root = tmp_path / "photos"
    (root / "sub").mkdir(parents=True)
    (root / "a.png").write_bytes(b"\x89PNG" + b"a" * 1000)
    (root / "b.txt").write_text("not an image")
    (root / "sub" / "c.jpg").write_bytes(b"\xff\xd8" + b"c" * 1000)
    return root


@pytest.fixture
def settings():
    return ConversionSettings(auto_install=False)
