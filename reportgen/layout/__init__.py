"""Preview pagination: splits a Report into estimated fixed-size pages."""

from .elements import (
    MainTitle,
    Page,
    ReferenceList,
    SectionHeading,
    SubTitle,
    Text,
    TitleBlock,
    TocRow,
    TocTable,
)
from .estimator import estimate_layout, estimate_toc

__all__ = [
    "MainTitle",
    "Page",
    "ReferenceList",
    "SectionHeading",
    "SubTitle",
    "Text",
    "TitleBlock",
    "TocRow",
    "TocTable",
    "estimate_layout",
    "estimate_toc",
]
