"""
Export modules for decomposition results.

Supported formats:
- Text report - box count and world-space corners
- glTF 2.0 (.glb) - Proxy geometry for engines and viewers
- Wavefront (.obj) - Universal legacy support
"""

from .report import ReportExporter, render_report
from .gltf_exporter import GLTFExporter
from .obj_exporter import OBJExporter

__all__ = ["ReportExporter", "render_report", "GLTFExporter", "OBJExporter"]
