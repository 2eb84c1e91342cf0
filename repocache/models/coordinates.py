"""Artifact coordinate model — the 5-part identifier every cache record uses.

Two canonical encodings exist:

- ``key`` — ``group:name:extension:classifier:version``, the full record key
  stored in the cache index and used for diffing.
- ``resolution_key`` — ``group:name:extension:classifier``, the same artifact
  at any version.

Both are parsed by a naive split on ``:``, so no field may contain a colon.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

FIELD_SEPARATOR = ":"
COORDINATE_FIELDS = ("group", "name", "extension", "classifier", "version")


class InvalidCoordinateError(ValueError):
    """Raised when a string or field set is not a well-formed coordinate."""


def _check_field(field: str, value: str, *, required: bool) -> str:
    if FIELD_SEPARATOR in value:
        raise InvalidCoordinateError(
            f"Coordinate field {field!r} must not contain {FIELD_SEPARATOR!r}: {value!r}"
        )
    if required and not value.strip():
        raise InvalidCoordinateError(f"Coordinate field {field!r} must not be blank")
    # Fields become path segments in the repository layout.
    if "/" in value or "\\" in value or value in (".", ".."):
        raise InvalidCoordinateError(
            f"Coordinate field {field!r} is not a valid path segment: {value!r}"
        )
    return value


class ArtifactCoordinate(BaseModel):
    """Immutable, hashable artifact identifier.

    ``classifier`` may be empty; every other field is required and non-blank.
    """

    model_config = ConfigDict(frozen=True)

    group: str
    name: str
    extension: str = "jar"
    classifier: str = ""
    version: str

    @field_validator("group", "name", "extension", "version")
    @classmethod
    def check_required_field(cls, value: str, info: ValidationInfo) -> str:
        return _check_field(info.field_name, value, required=True)

    @field_validator("classifier")
    @classmethod
    def check_classifier(cls, value: str) -> str:
        return _check_field("classifier", value, required=False)

    # ------------------------------------------------------------------
    # Encodings
    # ------------------------------------------------------------------

    @property
    def key(self) -> str:
        """``group:name:extension:classifier:version``."""
        return FIELD_SEPARATOR.join(
            (self.group, self.name, self.extension, self.classifier, self.version)
        )

    @property
    def resolution_key(self) -> str:
        """``group:name:extension:classifier`` — the artifact at any version."""
        return FIELD_SEPARATOR.join(
            (self.group, self.name, self.extension, self.classifier)
        )

    def __str__(self) -> str:
        return self.key

    @classmethod
    def parse(cls, text: str) -> ArtifactCoordinate:
        """Parse a ``group:name:extension:classifier:version`` string.

        Raises InvalidCoordinateError unless the text splits into exactly
        five fields with non-blank group, name, extension and version.
        """
        return cls.from_fields(text.strip().split(FIELD_SEPARATOR))

    @classmethod
    def from_fields(cls, parts: list[str] | tuple[str, ...]) -> ArtifactCoordinate:
        """Build a coordinate from five already-split fields."""
        if len(parts) != len(COORDINATE_FIELDS):
            raise InvalidCoordinateError(
                f"Expected {len(COORDINATE_FIELDS)} colon-delimited fields "
                f"({FIELD_SEPARATOR.join(COORDINATE_FIELDS)}), got {len(parts)}: "
                f"{FIELD_SEPARATOR.join(parts)!r}"
            )
        values = dict(zip(COORDINATE_FIELDS, parts))
        for field, value in values.items():
            _check_field(field, value, required=field != "classifier")
        return cls(**values)

    # ------------------------------------------------------------------
    # Repository layout
    # ------------------------------------------------------------------

    @property
    def file_name(self) -> str:
        """``name-version[-classifier].extension``."""
        suffix = f"-{self.classifier}" if self.classifier else ""
        return f"{self.name}-{self.version}{suffix}.{self.extension}"

    def repository_path(self) -> str:
        """Relative POSIX path of this artifact in a repository layout.

        ``org.example:lib:jar::1.0`` maps to
        ``org/example/lib/1.0/lib-1.0.jar``.
        """
        group_path = self.group.replace(".", "/")
        return f"{group_path}/{self.name}/{self.version}/{self.file_name}"


def coerce_coordinate(value: ArtifactCoordinate | str) -> ArtifactCoordinate:
    """Accept either a coordinate or its ``key`` string form."""
    if isinstance(value, ArtifactCoordinate):
        return value
    return ArtifactCoordinate.parse(value)
