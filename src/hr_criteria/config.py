from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class BuilderConfig:
    """
    Immutable settings for :class:`~hr_criteria.builder.CriteriaQueryBuilder`.

    Attributes:
        default_page_size: Page size used when a request does not give one.
        max_page_size: Upper bound applied when parsing request parameters.
        default_timeout: Seconds allowed for count + select when the
            caller passes no timeout.  ``None`` disables the deadline.
        tie_break_on_primary_key: Append the target's primary key to every
            sort so paging is deterministic.
        max_hierarchy_depth: Levels below the roots that hierarchy walks
            descend to.  ``None`` walks the whole tree.
    """

    default_page_size: int = 20
    max_page_size: int = 100
    default_timeout: float | None = None
    tie_break_on_primary_key: bool = True
    max_hierarchy_depth: int | None = None

    def __post_init__(self) -> None:
        if self.default_page_size <= 0:
            raise ValueError("default_page_size must be positive")
        if self.max_page_size < self.default_page_size:
            raise ValueError("max_page_size must be >= default_page_size")
        if self.default_timeout is not None and self.default_timeout <= 0:
            raise ValueError("default_timeout must be positive or None")
        if self.max_hierarchy_depth is not None and self.max_hierarchy_depth < 0:
            raise ValueError("max_hierarchy_depth must not be negative")

    def with_options(self, **changes: object) -> BuilderConfig:
        """Return a copy with the given settings replaced."""
        return replace(self, **changes)  # type: ignore[arg-type]
