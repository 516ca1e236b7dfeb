"""
app/validators/mapping_validator.py

Validation for column mappings and user edits to them.
"""

from __future__ import annotations

from collections.abc import Sequence

from app.domain.lead_import import ColumnMapping, SemanticType
from app.errors import MappingConflictError, MappingErrorDetail


class MappingValidator:
    """
    Enforces the single-use rule for non-reserved semantic types.
    """

    def validate(
        self,
        *,
        mapping: Sequence[ColumnMapping],
        source_headers: Sequence[str] | None = None,
    ) -> None:
        """
        Validate a full mapping and raise structured errors if invalid.

        When `source_headers` is given, the mapping must describe exactly
        those headers, in order.
        """

        errors: list[MappingErrorDetail] = []

        if source_headers is not None:
            mapped_names = [column.column_name for column in mapping]
            if mapped_names != list(source_headers):
                errors.append(
                    MappingErrorDetail(
                        code="headers_mismatch",
                        message="Mapping columns do not match the CSV headers.",
                        context={
                            "source_headers": list(source_headers),
                            "mapped_columns": mapped_names,
                        },
                    )
                )

        owners: dict[SemanticType, str] = {}
        for column in mapping:
            semantic_type = column.semantic_type
            if semantic_type.is_reserved:
                continue
            owner = owners.get(semantic_type)
            if owner is not None:
                errors.append(
                    MappingErrorDetail(
                        code="duplicate_single_use_type",
                        message="Type is already assigned to another column.",
                        column_name=column.column_name,
                        semantic_type=semantic_type.value,
                        context={"assigned_to": owner},
                    )
                )
                continue
            owners[semantic_type] = column.column_name

        if errors:
            duplicated = sorted(
                {error.semantic_type for error in errors if error.semantic_type}
            )
            if duplicated:
                message = (
                    "Each column type can only be used once. "
                    f"Remap the duplicate columns for: {', '.join(duplicated)}."
                )
            else:
                message = "Column mapping does not match the uploaded file. Re-run column mapping."
            raise MappingConflictError(message, errors=errors)

    def apply_edit(
        self,
        mapping: Sequence[ColumnMapping],
        column_index: int,
        new_type: SemanticType,
    ) -> tuple[ColumnMapping, ...]:
        """
        Return a copy of `mapping` with one column retyped.

        An edit that would give a single-use type to a second column is
        rejected; the conflicting column is never overwritten.
        """

        if not 0 <= column_index < len(mapping):
            raise MappingConflictError(
                "Column does not exist in the mapping. Refresh the mapping and try again.",
                errors=[
                    MappingErrorDetail(
                        code="unknown_column",
                        message="Column index out of range.",
                        context={"column_index": column_index},
                    )
                ],
            )

        target = mapping[column_index]
        if not new_type.is_reserved:
            for index, column in enumerate(mapping):
                if index != column_index and column.semantic_type is new_type:
                    raise MappingConflictError(
                        f'Column "{column.column_name}" is already mapped as {new_type.value}. '
                        "Only one column can use this type; change that column first.",
                        errors=[
                            MappingErrorDetail(
                                code="duplicate_single_use_type",
                                message="Type is already assigned to another column.",
                                column_name=target.column_name,
                                semantic_type=new_type.value,
                                context={"assigned_to": column.column_name},
                            )
                        ],
                    )

        edited = list(mapping)
        edited[column_index] = target.with_type(new_type)
        return tuple(edited)
