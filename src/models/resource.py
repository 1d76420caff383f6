"""
Resource data model.

A downloadable PDF from the resources bucket, decorated with the
category and ordering an admin assigned to it.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ResourceFile:
    filename: str  # Object key in the bucket, e.g. "Puppy essentials.pdf"
    display_name: str
    category: str
    size: Optional[str] = None  # Human readable, e.g. "1.5 KB"
    order: int = 0  # Position within the category

    def to_dict(self) -> dict:
        data = {
            "filename": self.filename,
            "displayName": self.display_name,
            "category": self.category,
            "order": self.order
        }
        if self.size is not None:
            data["size"] = self.size
        return data
