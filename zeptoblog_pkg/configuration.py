"""
The validated, immutable configuration of a single compilation run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

DEFAULT_POSTS_PER_PAGE = 10


@dataclass(frozen=True)
class GeneratorRequest:
    """A request to run the generator ``generator_type`` with a properties file."""
    name: str
    generator_type: str
    properties_path: Path


@dataclass(frozen=True)
class BlogConfiguration:
    title: str
    author: str
    site_uri: str
    source_root: Path
    output_root: Path
    format_default: str
    posts_per_page: int = DEFAULT_POSTS_PER_PAGE
    header_replace: Optional[Path] = None
    header_pre: Optional[Path] = None
    header_post: Optional[Path] = None
    footer_pre: Optional[Path] = None
    footer_post: Optional[Path] = None
    generator_requests: Dict[str, GeneratorRequest] = field(default_factory=dict)

    def __post_init__(self):
        if not Path(self.source_root).is_absolute():
            raise ValueError(f"Source root path {self.source_root} must be absolute")
        if not Path(self.output_root).is_absolute():
            raise ValueError(f"Output root path {self.output_root} must be absolute")
        if self.posts_per_page < 1:
            raise ValueError(f"Posts per page must be positive (got {self.posts_per_page})")
        # Normalize plain strings to paths without breaking immutability.
        object.__setattr__(self, 'source_root', Path(self.source_root))
        object.__setattr__(self, 'output_root', Path(self.output_root))
