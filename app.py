#!/usr/bin/env python3
"""
BoxCloud Web Interface

A simple Gradio-based web UI for decomposing shape files into boxes.

Run with: python app.py
Then open http://localhost:7860 in your browser
"""

import sys
from pathlib import Path
import logging
import math
import tempfile

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import gradio as gr
from boxcloud import BoxCloud, BoxCloudError
from boxcloud.logging_config import setup_logging

logger = logging.getLogger("boxcloud.app")


def process_shape(
    shape_file,
    shape_text: str,
    input_format: str,
    workers: int,
    chunk_size: int,
    export_obj: bool,
    export_glb: bool
):
    """
    Decompose an uploaded (or pasted) shape.

    Returns preview path, stats text, report text and file paths for downloads.
    """
    if shape_file is None and not (shape_text or "").strip():
        return None, "Please upload or paste a shape file first.", "", None, None, None

    export_dir = Path(tempfile.mkdtemp(prefix="boxcloud_"))
    if shape_file is not None:
        input_path = Path(shape_file if isinstance(shape_file, str) else shape_file.name)
    else:
        input_path = export_dir / "shape.txt"
        input_path.write_text(shape_text)

    fmt = "voxels" if input_format == "Voxel list" else "slices"
    cloud = BoxCloud(
        workers=int(workers),
        chunk_shape=(int(chunk_size),) * 3 if chunk_size else None
    )

    try:
        cloud.load_file(input_path, fmt).decompose()
    except (BoxCloudError, OSError) as e:
        logger.warning("Rejected %s: %s", input_path, e)
        return None, f"**Error:** {e}", "", None, None, None

    if cloud.box_count == 0:
        return None, "The shape has no filled voxels.", cloud.report(), None, None, None

    stats = cloud.get_stats()
    stats_text = f"""## Decomposition Complete!

| Metric | Value |
|--------|-------|
| Voxels | {stats['voxel_count']:,} |
| Components | {stats['components']} |
| Grid Size | {stats['grid_size']} |
| Cell Size | {stats['cell_size']:g} |
| Boxes | {stats['greedy_boxes']:,} |
| Largest Box | {stats['largest_box_volume']:,} voxels |
| Box Reduction | {stats['box_reduction_percent']:.1f}% |

**Settings:** {input_format}, Workers={workers}, Chunk={chunk_size or 'none'}
"""

    report_path = export_dir / "boxes.txt"
    cloud.export_report(report_path)

    # Always create GLB for preview
    preview_path = export_dir / "preview.glb"
    cloud.export_glb(preview_path)

    obj_path = None
    glb_path = None

    if export_obj:
        obj_path = str(export_dir / "boxes.obj")
        cloud.export_obj(obj_path)

    if export_glb:
        glb_path = str(export_dir / "boxes.glb")
        cloud.export_glb(glb_path)

    return str(preview_path), stats_text, cloud.report(), str(report_path), obj_path, glb_path


def create_demo_shape(style: str):
    """Create demo shape text and its input format."""
    if not style:
        return "", "Slices"

    if style == "Sphere (slices)":
        radius = 8
        lines = ["1", str(2 * radius - 1)]
        for z in range(-radius + 1, radius):
            r = math.sqrt(radius * radius - z * z)
            points = [
                (r * math.cos(2 * math.pi * i / 24), r * math.sin(2 * math.pi * i / 24))
                for i in range(24)
            ]
            lines.append(f"{z} {len(points)}")
            lines.extend(f"{x:.4f} {y:.4f}" for x, y in points)
        return "\n".join(lines), "Slices"

    if style == "L-bracket (slices)":
        outline = [(0, 0), (12, 0), (12, 3), (3, 3), (3, 10), (0, 10)]
        lines = ["1", "6"]
        for z in range(6):
            lines.append(f"{z} {len(outline)}")
            lines.extend(f"{x} {y}" for x, y in outline)
        return "\n".join(lines), "Slices"

    if style == "Stairs (voxels)":
        voxels = [
            (x, y, z)
            for x in range(8)
            for y in range(4)
            for z in range(x + 1)
        ]
        lines = ["0.5", "8 4 8", str(len(voxels))]
        lines.extend(f"{x} {y} {z}" for x, y, z in voxels)
        return "\n".join(lines), "Voxel list"

    return "", "Slices"


# Build the Gradio interface
with gr.Blocks(title="BoxCloud") as app:

    gr.Markdown("""
    # BoxCloud
    ### Decompose Voxelized Solids into Boxes

    Upload a slice or voxel-list file, or try a demo, then download the box proxy!
    """)

    with gr.Row():
        # Left column - Input
        with gr.Column(scale=1):
            gr.Markdown("### Input Shape")

            shape_file = gr.File(label="Upload Shape File", file_types=[".txt"])
            shape_text = gr.Textbox(label="Or paste shape text", lines=8)

            with gr.Row():
                demo_dropdown = gr.Dropdown(
                    choices=["Sphere (slices)", "L-bracket (slices)", "Stairs (voxels)"],
                    label="Or try a demo"
                )
                demo_btn = gr.Button("Load Demo")

            gr.Markdown("### Settings")

            input_format = gr.Radio(
                choices=["Slices", "Voxel list"],
                value="Slices",
                label="Input Format"
            )

            workers = gr.Slider(minimum=1, maximum=8, value=1, step=1, label="Workers")

            chunk_size = gr.Slider(
                minimum=0,
                maximum=128,
                value=0,
                step=8,
                label="Chunk Size (0 = whole grid)"
            )

            gr.Markdown("### Export Formats")
            with gr.Row():
                export_obj = gr.Checkbox(value=True, label="OBJ")
                export_glb = gr.Checkbox(value=True, label="GLB")

            generate_btn = gr.Button("Decompose", variant="primary")

        # Middle column - 3D Preview
        with gr.Column(scale=2):
            gr.Markdown("### Box Preview")

            model_preview = gr.Model3D(
                label="Box Proxy",
                clear_color=[0.1, 0.1, 0.1, 1.0]
            )

            stats_output = gr.Markdown(
                value="Load a shape and click 'Decompose' to see results."
            )

            report_output = gr.Textbox(label="Report", lines=10)

        # Right column - Downloads
        with gr.Column(scale=1):
            gr.Markdown("### Downloads")

            report_file = gr.File(label="Report (.txt)")
            obj_output = gr.File(label="OBJ (Universal)")
            glb_output = gr.File(label="GLB (Engines/Web)")

    demo_btn.click(
        fn=create_demo_shape,
        inputs=[demo_dropdown],
        outputs=[shape_text, input_format]
    )

    generate_btn.click(
        fn=process_shape,
        inputs=[
            shape_file,
            shape_text,
            input_format,
            workers,
            chunk_size,
            export_obj,
            export_glb
        ],
        outputs=[model_preview, stats_output, report_output, report_file, obj_output, glb_output]
    )


if __name__ == "__main__":
    setup_logging(logging.INFO)

    print("\n" + "="*60)
    print("BoxCloud Web Interface")
    print("="*60)
    print("\nStarting server...")
    print("Open http://localhost:7860 in your browser\n")

    app.launch(
        server_name="0.0.0.0",
        server_port=7860,
        share=False
    )
