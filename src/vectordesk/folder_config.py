"""Folder processing-configuration model.

Pure functions that turn raw form input (name, chunk size, chunk overlap,
metadata field rows) into a validated ``CreateFolderPayload``. Nothing here
touches the store; failures come back as ``Result`` values.

Chunking rules:
  - chunk size is clamped to [100, 5000]
  - chunk overlap is clamped to [0, floor(size / 2)], re-clamped whenever
    the size changes

Schema rules (checked in this order, first failure wins):
  1. every select field has at least one option
  2. every key is non-blank
  3. keys are unique (case-sensitive)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from vectordesk.errors import Result, ValidationError, ValidationKind
from vectordesk.models import (
    MAX_CHUNK_SIZE,
    MIN_CHUNK_SIZE,
    CreateFolderPayload,
    FieldSpec,
    FieldType,
    Folder,
    MetadataField,
)

MIN_NAME_LENGTH = 3


@dataclass(frozen=True)
class ChunkingParams:
    size: int
    overlap: int


# ---------------------------------------------------------------------------
# Chunking
# ---------------------------------------------------------------------------


def max_overlap(size: int) -> int:
    """Largest overlap allowed for *size*."""
    return size // 2


def validate_chunking(size: Any, overlap: Any) -> Result[ChunkingParams]:
    """Clamp *size* and *overlap* into their allowed ranges.

    Out-of-range integers are clamped, not rejected. Only input that is not
    an integer at all (e.g. ``"abc"`` from a text box) fails, with
    ``OutOfRange``.
    """
    try:
        size_i = _as_int(size)
    except (TypeError, ValueError):
        return Result.failure(
            ValidationError(
                ValidationKind.OUT_OF_RANGE,
                "chunkSize",
                f"Chunk size must be a whole number between {MIN_CHUNK_SIZE} and {MAX_CHUNK_SIZE}.",
            )
        )
    try:
        overlap_i = _as_int(overlap)
    except (TypeError, ValueError):
        return Result.failure(
            ValidationError(
                ValidationKind.OUT_OF_RANGE,
                "chunkOverlap",
                "Chunk overlap must be a whole number.",
            )
        )

    clamped_size = max(MIN_CHUNK_SIZE, min(MAX_CHUNK_SIZE, size_i))
    clamped_overlap = max(0, min(max_overlap(clamped_size), overlap_i))
    return Result.success(ChunkingParams(clamped_size, clamped_overlap))


def adjust_chunk_size(size: int, overlap: int, delta: int) -> ChunkingParams:
    """Stepper button: move *size* by *delta*, staying inside the bounds.

    The overlap is re-clamped against the new size in the same step.
    """
    new_size = max(MIN_CHUNK_SIZE, min(MAX_CHUNK_SIZE, size + delta))
    return ChunkingParams(new_size, max(0, min(max_overlap(new_size), overlap)))


def adjust_chunk_overlap(size: int, overlap: int, delta: int) -> int:
    """Stepper button: move *overlap* by *delta*, staying inside [0, size/2]."""
    return max(0, min(max_overlap(size), overlap + delta))


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("bool is not a chunk size")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{value} is not a whole number")
        return int(value)
    return int(str(value).strip())


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------


def validate_name(name: str, label: str = "Folder") -> Result[str]:
    """Strip *name* and require at least three characters."""
    stripped = (name or "").strip()
    if not stripped:
        return Result.failure(
            ValidationError(ValidationKind.TOO_SHORT, "name", f"{label} name is required")
        )
    if len(stripped) < MIN_NAME_LENGTH:
        return Result.failure(
            ValidationError(
                ValidationKind.TOO_SHORT,
                "name",
                f"{label} name must be at least {MIN_NAME_LENGTH} characters",
            )
        )
    return Result.success(stripped)


# ---------------------------------------------------------------------------
# Field list editing
# ---------------------------------------------------------------------------


def add_field(
    fields: list[MetadataField], type: FieldType | str = FieldType.SELECT
) -> list[MetadataField]:
    """Return a new list with a blank, required field of *type* appended."""
    return [*fields, MetadataField(key="", type=FieldType(type), options=[], required=True)]


def remove_field(fields: list[MetadataField], index: int) -> list[MetadataField]:
    """Return a new list without the field at *index*."""
    if not 0 <= index < len(fields):
        raise IndexError(f"no metadata field at index {index}")
    return [f for i, f in enumerate(fields) if i != index]


def update_field(
    fields: list[MetadataField], index: int, **changes: Any
) -> list[MetadataField]:
    """Return a new list with the field at *index* updated by *changes*."""
    if not 0 <= index < len(fields):
        raise IndexError(f"no metadata field at index {index}")
    if "type" in changes:
        changes["type"] = FieldType(changes["type"])
    if "options" in changes:
        changes["options"] = list(changes["options"])
    updated = replace(fields[index], **changes)
    return [updated if i == index else f for i, f in enumerate(fields)]


def add_option(fields: list[MetadataField], index: int, value: str = "") -> list[MetadataField]:
    return update_field(fields, index, options=[*fields[index].options, value])


def update_option(
    fields: list[MetadataField], index: int, option_index: int, value: str
) -> list[MetadataField]:
    options = list(fields[index].options)
    options[option_index] = value
    return update_field(fields, index, options=options)


def remove_option(
    fields: list[MetadataField], index: int, option_index: int
) -> list[MetadataField]:
    options = [o for i, o in enumerate(fields[index].options) if i != option_index]
    return update_field(fields, index, options=options)


def fields_from_config(folder: Folder) -> list[MetadataField]:
    """Rebuild the editable field rows of a stored *folder*, in param order."""
    config = folder.metadata_config or {}
    rows: list[MetadataField] = []
    for key in folder.metadata_params:
        spec = config.get(key, FieldSpec())
        rows.append(
            MetadataField(
                key=key,
                type=spec.type,
                options=list(spec.options or []),
                required=spec.required,
            )
        )
    return rows


# ---------------------------------------------------------------------------
# Schema validation + persistence shape
# ---------------------------------------------------------------------------


def validate_schema(fields: list[MetadataField]) -> Result[dict[str, FieldSpec]]:
    """Validate *fields* and return the ``metadataConfig`` mapping."""
    for f in fields:
        if f.type is FieldType.SELECT and not f.options:
            return Result.failure(
                ValidationError(
                    ValidationKind.EMPTY_OPTIONS,
                    f.key,
                    f'Field "{f.key}" must have at least one option.',
                )
            )

    seen: set[str] = set()
    for f in fields:
        if not f.key.strip():
            return Result.failure(
                ValidationError(
                    ValidationKind.EMPTY_KEY, f.key, "Every metadata field needs a name."
                )
            )
        if f.key in seen:
            return Result.failure(
                ValidationError(
                    ValidationKind.DUPLICATE_KEY,
                    f.key,
                    f'Metadata field "{f.key}" is defined more than once.',
                )
            )
        seen.add(f.key)

    return Result.success({f.key: _to_spec(f) for f in fields})


def _to_spec(f: MetadataField) -> FieldSpec:
    return FieldSpec(
        type=f.type,
        options=list(f.options) if f.type is FieldType.SELECT else None,
        required=f.required,
    )


def to_persistable(
    name: str,
    size: int,
    overlap: int,
    fields: list[MetadataField],
    *,
    project_id: str = "",
) -> CreateFolderPayload:
    """Assemble the folder payload; keys keep the order of *fields*."""
    return CreateFolderPayload(
        project_id=project_id,
        name=name,
        chunk_size=size,
        chunk_overlap=overlap,
        metadata_params=[f.key for f in fields],
        metadata_config={f.key: _to_spec(f) for f in fields},
    )


def check_folder_payload(payload: CreateFolderPayload) -> Result[CreateFolderPayload]:
    """Check an assembled payload against the stored-folder rules.

    Unlike the form helpers nothing is clamped: out-of-range chunking is an
    error here.
    """
    size, overlap = payload.chunk_size, payload.chunk_overlap
    if not MIN_CHUNK_SIZE <= size <= MAX_CHUNK_SIZE:
        return Result.failure(
            ValidationError(
                ValidationKind.OUT_OF_RANGE,
                "chunkSize",
                f"Chunk size {size} is outside {MIN_CHUNK_SIZE}-{MAX_CHUNK_SIZE}.",
            )
        )
    if not 0 <= overlap <= max_overlap(size):
        return Result.failure(
            ValidationError(
                ValidationKind.OUT_OF_RANGE,
                "chunkOverlap",
                f"Chunk overlap {overlap} must be between 0 and {max_overlap(size)}.",
            )
        )

    config = payload.metadata_config or {}
    rows = [
        MetadataField(
            key=key,
            type=config[key].type if key in config else FieldType.TEXT,
            options=list((config[key].options if key in config else None) or []),
        )
        for key in payload.metadata_params
    ]
    schema = validate_schema(rows)
    if not schema.ok:
        return Result.failure(schema.error)  # type: ignore[arg-type]

    if list(payload.metadata_params) != list(config):
        return Result.failure(
            ValidationError(
                ValidationKind.KEY_MISMATCH,
                "metadataParams",
                "Metadata params must list the configured fields in order.",
            )
        )
    return Result.success(payload)


def build_folder_config(
    name: str,
    size: Any,
    overlap: Any,
    fields: list[MetadataField],
    *,
    project_id: str = "",
) -> Result[CreateFolderPayload]:
    """Run every check a form submit needs and return the payload."""
    name_result = validate_name(name)
    if not name_result.ok:
        return Result.failure(name_result.error)  # type: ignore[arg-type]

    chunking = validate_chunking(size, overlap)
    if not chunking.ok:
        return Result.failure(chunking.error)  # type: ignore[arg-type]

    schema = validate_schema(fields)
    if not schema.ok:
        return Result.failure(schema.error)  # type: ignore[arg-type]

    params = chunking.unwrap()
    return Result.success(
        to_persistable(
            name_result.unwrap(),
            params.size,
            params.overlap,
            fields,
            project_id=project_id,
        )
    )
