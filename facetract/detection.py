"""
Detection data transfer objects.

This module defines the two value types returned by Detector.detect():
BoundingBox (a rectangle in image pixel space) and Detection (a box
paired with the model's face probability). Both are frozen and carry
no behavior beyond data access and serialization.

Hard-coded:
    - The MTCNN graph emits box rows as (y1, x1, y2, x2). The transpose
      to (x1, y1, x2, y2) happens in BoundingBox.from_model_row and
      nowhere else.
"""

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """A rectangle given by two opposite corners in image pixel space.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
    """

    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def from_model_row(cls, row: Sequence[float]) -> "BoundingBox":
        """Build a box from one raw model row ordered (y1, x1, y2, x2)."""
        if len(row) != 4:
            raise ValueError(f"A box row has 4 coordinates, got {len(row)}.")
        return cls(
            x1=float(row[1]),
            y1=float(row[0]),
            x2=float(row[3]),
            y2=float(row[2]),
        )

    @property
    def width(self) -> int:
        """Box width in whole pixels (fraction truncated)."""
        return int(self.x2 - self.x1)

    @property
    def height(self) -> int:
        """Box height in whole pixels (fraction truncated)."""
        return int(self.y2 - self.y1)

    @property
    def area(self) -> int:
        return self.width * self.height

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {
            "x1": round(self.x1, 2),
            "y1": round(self.y1, 2),
            "x2": round(self.x2, 2),
            "y2": round(self.y2, 2),
        }


@dataclass(frozen=True, slots=True)
class Detection:
    """A single detected face.

    Attributes:
        box: Location of the face.
        probability: Model confidence in [0.0, 1.0] that the box
            contains a human face.
    """

    box: BoundingBox
    probability: float

    def to_dict(self) -> dict:
        """Return a flat dict suitable for JSON/CSV serialization."""
        return {
            **self.box.to_dict(),
            "probability": round(self.probability, 4),
        }
