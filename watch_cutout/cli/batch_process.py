import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from ..models.segmentation_config import SegmentationConfig
from ..pipeline.background_remover import OUTPUT_DIR, remove_background_gallery
from ..services.pixel_buffer_service import PixelBufferService

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog="watch-cutout",
        description="Make the background of watch product photos transparent.",
    )
    ap.add_argument("input", help="image file or folder of images")
    ap.add_argument("-o", "--output-dir", default=OUTPUT_DIR,
                    help="where the transparent PNGs are written")
    ap.add_argument("--mask-dir", default=None,
                    help="also write the black/white masks here")
    ap.add_argument("--recursive", action="store_true",
                    help="descend into sub-folders of INPUT")
    ap.add_argument("--verbose", action="store_true", help="log per-stage statistics")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = _parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    pixel_buffer_service = PixelBufferService()
    source = Path(args.input)
    if source.is_dir():
        gallery = pixel_buffer_service.stream_gallery(source, recursive=args.recursive)
    else:
        try:
            gallery = [pixel_buffer_service.load(source)]
        except (FileNotFoundError, TimeoutError) as err:
            logger.error(str(err))
            return 1

    results = remove_background_gallery(
        gallery,
        config=SegmentationConfig.from_env(),
        pixel_buffer_service=pixel_buffer_service,
        output_dir=args.output_dir,
        mask_dir=args.mask_dir,
    )
    logger.info(f"Processed {len(results)} image(s) into {args.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
