#!/usr/bin/env python3
"""
OpenCL CL files header generator

Walks a JNI source tree, finds every OpenCL kernel (*.cl, any casing) and
writes a single C header embedding each kernel as a string constant plus
its size, so native code can build programs without shipping .cl files.
"""

import json
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, TextIO

logger = logging.getLogger(__name__)

DEFAULT_JNI_PATH = "./app/src/main/jni/"
DEFAULT_HEADER_NAME = "opencl_cl_files.h"
DEFAULT_PREFIX = "CLCL_"
DEFAULT_SIZE_SUFFIX = "__SIZE"

KERNEL_EXTENSION = ".CL"

# Config file key -> GeneratorConfig field
CONFIG_KEYS = {
    'jniPath': 'jni_path',
    'headerName': 'header_name',
    'variablePrefix': 'variable_prefix',
    'sizeSuffix': 'size_suffix',
}


class GenerationError(Exception):
    """Base error for a failed generation run"""


class StreamUnavailable(GenerationError):
    """The output header could not be opened, or is no longer open"""


class ReadFailure(GenerationError):
    """A kernel file could not be read"""


class WriteFailure(GenerationError):
    """Writing to the output header failed"""


@dataclass(frozen=True)
class GenerationRequest:
    root_directory: Path
    output_file: Path
    variable_prefix: str = DEFAULT_PREFIX
    size_suffix: str = DEFAULT_SIZE_SUFFIX


@dataclass(frozen=True)
class GenerationResult:
    ok: bool
    output_file: Path
    kernel_count: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class GeneratorConfig:
    """Naming options, relative to a project root"""

    jni_path: str = DEFAULT_JNI_PATH
    header_name: str = DEFAULT_HEADER_NAME
    variable_prefix: str = DEFAULT_PREFIX
    size_suffix: str = DEFAULT_SIZE_SUFFIX

    @classmethod
    def from_mapping(cls, data: dict) -> "GeneratorConfig":
        overrides = {}
        for key, field_name in CONFIG_KEYS.items():
            value = data.get(key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Config value '{key}' must be a string, got {type(value).__name__}")
            overrides[field_name] = value
        return cls().merged(**overrides)

    @classmethod
    def from_file(cls, path) -> "GeneratorConfig":
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config file '{path}' must contain a JSON object")
        return cls.from_mapping(data)

    def merged(self, **overrides) -> "GeneratorConfig":
        """Copy with every non-empty override applied; empty values keep the current setting"""
        return replace(self, **{name: value for name, value in overrides.items() if value})

    def to_request(self, project_root) -> GenerationRequest:
        # Always under the project root, even with a leading separator
        root_directory = Path(project_root) / self.jni_path.lstrip("/\\")
        return GenerationRequest(
            root_directory=root_directory,
            output_file=root_directory / self.header_name,
            variable_prefix=self.variable_prefix,
            size_suffix=self.size_suffix,
        )


@dataclass(frozen=True)
class KernelFile:
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def base_name(self) -> str:
        return self.name[:-len(KERNEL_EXTENSION)]

    def read_lines(self) -> list[str]:
        """
        Read the kernel as a line-oriented reader sees it.

        \\n, \\r\\n and a lone \\r all end a line and are dropped; a final
        terminator does not add an empty line.
        """
        with open(self.path, 'r', encoding='utf-8') as f:
            return [line.rstrip('\n') for line in f]


def is_kernel_file(name: str) -> bool:
    return name.upper().endswith(KERNEL_EXTENSION)


def derive_identifier(kernel_file: KernelFile, prefix: str = DEFAULT_PREFIX) -> str:
    """CLCL_ + upper-cased base name with '.' -> '_'"""
    return prefix + kernel_file.base_name.upper().replace('.', '_')


def include_guard_name(header_name: str) -> str:
    return header_name.upper().replace('.', '_')


def escape_line(line: str) -> str:
    # Backslashes before quotes
    return line.replace('\\', '\\\\').replace('"', '\\"')


def kernel_size(lines: list[str]) -> int:
    """
    Historical size: UTF-16 code units per line, plus one for the terminator
    whatever it was on disk. Characters outside the BMP count as two.
    """
    return sum(len(line.encode("utf-16-le", "surrogatepass")) // 2 + 1 for line in lines)


def format_timestamp(moment: datetime) -> str:
    zone = moment.strftime('%Z')
    fmt = '%a %b %d %H:%M:%S %Z %Y' if zone else '%a %b %d %H:%M:%S %Y'
    return moment.strftime(fmt)


def walk_kernel_files(root) -> Iterator[KernelFile]:
    """
    Yield kernel files under root, depth-first, in name order.

    A directory that cannot be listed contributes nothing, so a missing or
    unreadable root looks the same as an empty one.
    """
    directory = Path(root)

    try:
        entries = sorted(directory.iterdir(), key=lambda item: item.name)
    except OSError as exc:
        logger.debug("Skipping unlistable directory %s: %s", directory, exc)
        return

    for item in entries:
        try:
            # Gone since the listing
            if not item.exists():
                continue
            is_dir = item.is_dir()
            is_file = not is_dir and item.is_file()
        except OSError as exc:
            logger.debug("Skipping %s: %s", item, exc)
            continue

        if is_dir:
            yield from walk_kernel_files(item)
        elif is_file and is_kernel_file(item.name):
            yield KernelFile(item)


class HeaderWriter:
    """Owns the open output stream and naming options for one run"""

    def __init__(
        self,
        stream: Optional[TextIO],
        header_name: str,
        variable_prefix: str = DEFAULT_PREFIX,
        size_suffix: str = DEFAULT_SIZE_SUFFIX,
        generated_at: Optional[datetime] = None,
    ):
        self.stream = stream
        self.header_name = header_name
        self.variable_prefix = variable_prefix
        self.size_suffix = size_suffix
        self.generated_at = generated_at

    def _ensure_open(self):
        if self.stream is None or self.stream.closed:
            raise StreamUnavailable(f"Output stream for '{self.header_name}' is not open")

    def _write(self, text: str):
        self._ensure_open()
        try:
            self.stream.write(text)
        except (OSError, UnicodeEncodeError) as exc:
            raise WriteFailure(str(exc)) from exc

    def write_header(self):
        moment = self.generated_at or datetime.now().astimezone()
        guard = include_guard_name(self.header_name)
        self._write(
            f"/* ###### AutoGenerated File. Generated Data:{format_timestamp(moment)} ###### */\n"
            "\n"
            f"#ifndef __{guard}__\n"
            f"#define __{guard}__\n"
            "\n"
            "#include <stddef.h>\n"
            "\n"
        )

    def write_footer(self):
        self._write(
            "#endif\n"
            "\n"
            "/* ###### End AutoGenerated File. ###### */\n"
        )

    def emit_constant_pair(self, kernel_file: KernelFile) -> str:
        """Embed one kernel as a string constant and a size constant; returns the identifier"""
        self._ensure_open()
        identifier = derive_identifier(kernel_file, self.variable_prefix)

        try:
            lines = kernel_file.read_lines()
        except (OSError, UnicodeDecodeError) as exc:
            raise ReadFailure(str(exc)) from exc

        parts = [f"static const char *{identifier} = \n"]
        parts.extend(f'\t"{escape_line(line)}\\n"\n' for line in lines)
        parts.append('\t"";\n\n\n')
        parts.append(f"static const size_t {identifier}{self.size_suffix} = {kernel_size(lines)};\n\n\n")
        self._write(''.join(parts))

        logger.debug("Embedded %s as %s (%d lines)", kernel_file.path, identifier, len(lines))
        return identifier

    def flush(self):
        self._ensure_open()
        try:
            self.stream.flush()
        except OSError as exc:
            raise WriteFailure(str(exc)) from exc


def _close_quietly(stream: TextIO, path: Path):
    try:
        stream.close()
    except OSError as exc:
        logger.warning("Failed to close %s: %s", path, exc)


def write_header_file(request: GenerationRequest, generated_at: Optional[datetime] = None) -> int:
    """
    Run one generation: open output, header, every kernel, footer.

    Args:
        request: Scan root, output path and naming options
        generated_at: Banner timestamp (default: now)

    Returns:
        Number of kernel files embedded

    Raises:
        GenerationError: On the first failure. Output written so far is
            left on disk; the stream is closed either way.
    """
    output_file = Path(request.output_file)

    # The parent directory is not created. Undecodable file names are
    # written back as their raw bytes.
    try:
        stream = open(output_file, 'w', encoding='utf-8', errors='surrogateescape', newline='\n')
    except OSError as exc:
        raise StreamUnavailable(str(exc)) from exc

    try:
        writer = HeaderWriter(
            stream,
            output_file.name,
            variable_prefix=request.variable_prefix,
            size_suffix=request.size_suffix,
            generated_at=generated_at,
        )
        writer.write_header()

        count = 0
        for kernel_file in walk_kernel_files(request.root_directory):
            writer.emit_constant_pair(kernel_file)
            count += 1

        writer.write_footer()
        writer.flush()
    finally:
        _close_quietly(stream, output_file)

    return count


def generate(request: GenerationRequest, generated_at: Optional[datetime] = None) -> GenerationResult:
    """Generate the header and report the outcome instead of raising"""
    output_file = Path(request.output_file)
    try:
        count = write_header_file(request, generated_at)
    except GenerationError as exc:
        logger.debug("Failed to generate %s: %s", output_file, exc)
        return GenerationResult(ok=False, output_file=output_file, error=str(exc))

    logger.info("Generated %s from %d kernel file(s)", output_file, count)
    return GenerationResult(ok=True, output_file=output_file, kernel_count=count)
