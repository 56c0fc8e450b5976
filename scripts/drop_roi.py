#!/usr/bin/env python
"""
Drop a fixed-size ROI on an image region and optionally export it.

Stores the drawn region as a placeholder annotation (as the viewer would),
then runs the ROI pipeline once and prints the report.

Usage:
    python scripts/drop_roi.py <image> --region X1 Y1 X2 Y2 [--size 512]
        [--description TEXT] [--export out.png] [--db annotations.db]
"""

import sys
import argparse
import logging
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from boxdrop.models import AnnotationRecord, DEFAULT_DESCRIPTION, PipelineParameters
from boxdrop.pipeline import RoiPipeline
from boxdrop.pixels import ImagePixelSource
from boxdrop.store import AnnotationStore


def main():
    parser = argparse.ArgumentParser(description="Place a square ROI on an image region")
    parser.add_argument("image", help="Path to the image")
    parser.add_argument("--region", type=float, nargs=4, required=True,
                        metavar=("X1", "Y1", "X2", "Y2"), help="Drawn region corners")
    parser.add_argument("--name", default="Rectangle", help="Annotation name (default: Rectangle)")
    parser.add_argument("--size", type=int, default=None, help="ROI side length (default: 512)")
    parser.add_argument("--description", default=DEFAULT_DESCRIPTION, help="ROI description text")
    parser.add_argument("--export", default=None, help="Export the ROI pixels to this file")
    parser.add_argument("--db", default=None, help="Annotation database (default: sidecar next to image)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    x1, y1, x2, y2 = args.region
    region = [(x1, y1), (x2, y1), (x2, y2), (x1, y2)]

    pipeline = RoiPipeline(ImagePixelSource(args.image), db_path=args.db)
    try:
        size = args.size if args.size is not None else pipeline.bounds.default

        with AnnotationStore.session(pipeline.db_path, pipeline.source.identifier) as store:
            store.append(AnnotationRecord(name=args.name, points=[region]))

        result = pipeline.run(PipelineParameters(
            size=size,
            description=args.description,
            region=region,
            export_requested=args.export is not None,
            output_path=args.export or "",
        ))
    except (OSError, ValueError) as e:
        print(f"✗ ROI placement failed: {e}")
        sys.exit(1)
    finally:
        pipeline.close()

    print(result.report, end="")

    if result.export_error:
        sys.exit(1)


if __name__ == "__main__":
    main()
