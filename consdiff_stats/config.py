"""
Configuration schema for the consensus-diff statistics run.

Keep this lean: only the knobs the estimator needs (sweep bounds,
linear size-model constants, archive conventions, and the parser's
strictness).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# Fixed-width prefix of every consensus entry's base name.
TIMESTAMP_WIDTH = len("YYYY-MM-DD-HH-MM-SS")


class StatsConfig(BaseModel):
    """
    Centralized, validated configuration for one statistics run.
    Sizes are uncompressed bytes; depths and intervals are counted in
    snapshot intervals (hours for the hourly consensus archives).
    """

    model_config = ConfigDict(frozen=True)

    # === Sweep bounds ===
    max_retention: int = Field(
        default=12,
        ge=0,
        description="Largest retention depth K swept (K runs from 0 to this value).",
    )
    max_interval: int = Field(
        default=12,
        ge=1,
        description="Largest comparison interval I swept (I runs from 1 to this value).",
    )

    # === Linear size model ===
    added_entry_overhead: float = Field(
        default=3.0,
        ge=0.0,
        description="Diff framing bytes per added entry, on top of the mean entry size.",
    )
    removed_entry_cost: float = Field(
        default=6.0,
        ge=0.0,
        description="Bytes needed to encode one removed entry in a diff.",
    )

    # === Archive conventions ===
    aux_path_marker: str = Field(
        default="/micro/",
        min_length=1,
        description="Member path substring marking auxiliary-descriptor entries.",
    )
    timestamp_format: str = Field(
        default="%Y-%m-%d-%H-%M-%S",
        description="strptime format of the fixed-width entry-name prefix.",
    )
    decompressors: dict[str, str] = Field(
        default_factory=lambda: {
            ".xz": "xzcat",
            ".bz2": "bzcat",
            ".gz": "zcat",
        },
        description="Archive suffix -> external decompression command.",
    )

    # === Parser strictness ===
    strict_records: bool = Field(
        default=True,
        description="Abort on short 'r'/'m' lines. When False they are logged and skipped; "
        "identity/hash lockstep and duplicate identifiers stay fatal either way.",
    )

    # === Execution ===
    workers: int = Field(
        default=1,
        ge=1,
        description="Process workers for the retention sweep; 1 keeps it in-process.",
    )
