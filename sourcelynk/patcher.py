"""Embed a source link document into a binary with objcopy."""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Iterable

from .config import DEFAULT_OBJCOPY, DEFAULT_SECTION_NAME
from .models import SourceLinkDocument


class PatchError(RuntimeError):
    """Raised when the binary could not be rewritten; the original is left untouched."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class ObjcopyPatcher:
    """Adds a named section holding the serialized document to an ELF file."""

    def __init__(
        self,
        objcopy: str = DEFAULT_OBJCOPY,
        runner: Callable[..., str] | None = None,
    ) -> None:
        self.objcopy = objcopy
        self._runner = runner or self._default_runner

    def embed(
        self,
        binary: Path,
        document: SourceLinkDocument,
        *,
        section_name: str = DEFAULT_SECTION_NAME,
    ) -> None:
        binary = Path(binary)
        created: list[Path] = []
        try:
            json_fd, json_name = tempfile.mkstemp(prefix="sourcelynk-", suffix=".json")
            json_path = Path(json_name)
            created.append(json_path)
            with os.fdopen(json_fd, "w", encoding="utf-8") as handle:
                json.dump(document.to_dict(), handle)

            # Output lives beside the binary so the final replace stays on one filesystem.
            out_fd, out_name = tempfile.mkstemp(
                prefix=f".{binary.name}.", suffix=".sourcelynk", dir=binary.parent
            )
            os.close(out_fd)
            output_path = Path(out_name)
            created.append(output_path)

            args = [
                self.objcopy,
                "--add-section",
                f"{section_name}={json_path}",
                str(binary),
                str(output_path),
            ]
            try:
                self._runner(args, cwd=binary.parent, capture_output=True)
            except subprocess.CalledProcessError as exc:
                stderr = exc.stderr or ""
                if isinstance(stderr, bytes):
                    stderr = stderr.decode("utf-8", errors="replace")
                raise PatchError(f"{self.objcopy} exited with {exc.returncode}", stderr) from exc
            except OSError as exc:
                raise PatchError(f"Unable to run {self.objcopy}: {exc}") from exc

            shutil.copymode(binary, output_path)
            os.replace(output_path, binary)
        finally:
            for leftover in created:
                try:
                    leftover.unlink()
                except FileNotFoundError:
                    pass

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        capture_output: bool = False,
    ) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=capture_output,
        )
        return completed.stdout if capture_output else ""


__all__ = ["ObjcopyPatcher", "PatchError"]
