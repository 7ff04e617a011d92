"""
Plain-text box report.

Format:
    Boxes: N
    Box 0: (x0, y0, z0) -> (x1, y1, z1)
    ...

Corners are in world units: grid coordinates scaled by the cell size and
offset by the grid origin.
"""

from pathlib import Path
from typing import Sequence, Tuple, Union

from ..shapes import Box


def _format_point(point: Tuple[float, float, float], precision: int) -> str:
    return "(" + ", ".join(f"{v:.{precision}g}" for v in point) + ")"


def render_report(
    boxes: Sequence[Box],
    cell_size: float = 1.0,
    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0),
    precision: int = 6
) -> str:
    """
    Render the box list as text.

    Args:
        boxes: Boxes in creation order
        cell_size: Edge length of one voxel
        origin: World position of grid cell (0, 0, 0)
        precision: Significant digits per coordinate

    Returns:
        Report text ending with a newline
    """
    lines = [f"Boxes: {len(boxes)}"]
    for i, box in enumerate(boxes):
        lower, upper = box.to_world(cell_size, origin)
        lines.append(
            f"Box {i}: {_format_point(lower, precision)} -> "
            f"{_format_point(upper, precision)}"
        )
    return "\n".join(lines) + "\n"


class ReportExporter:
    """Write the text report to a file."""

    def __init__(self, precision: int = 6):
        self.precision = precision

    def export(
        self,
        boxes: Sequence[Box],
        output_path: Union[str, Path],
        cell_size: float = 1.0,
        origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    ):
        """
        Export the report.

        Args:
            boxes: Boxes in creation order
            output_path: Output file path (.txt)
            cell_size: Edge length of one voxel
            origin: World position of grid cell (0, 0, 0)
        """
        text = render_report(boxes, cell_size, origin, self.precision)
        Path(output_path).write_text(text)
