"""Command line entry point: describe one image and print the metadata as JSON."""

import argparse
import asyncio
import base64
import json
import logging
import mimetypes
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from vision_metadata.client import MetadataClient
from vision_metadata.config import LOG_LEVEL, Configuration
from vision_metadata.schemas.image import ImageInfo
from vision_metadata.schemas.prompts import PromptRule
from vision_metadata.storage import InMemoryPromptStore

logger = logging.getLogger(__name__)


def parse_rule(value: str) -> PromptRule:
    """Parse a ``PROPERTY=PROMPT`` command line value."""
    prop, sep, prompt = value.partition("=")
    if not sep or not prop.strip() or not prompt.strip():
        raise argparse.ArgumentTypeError(f"expected PROPERTY=PROMPT, got {value!r}")
    return PromptRule(property=prop.strip(), prompt=prompt.strip())


def load_image(source: str) -> tuple[str, ImageInfo]:
    """Turn a local path or URL into an image reference and descriptor.

    Local files are inlined as a base64 data URL. Remote URLs are passed
    through; their dimensions are unknown and reported as 0.

    Args:
        source: File path or http(s) URL

    Returns:
        Tuple of (image_ref, image_info)
    """
    if source.startswith(("http://", "https://", "data:")):
        name = source.rsplit("/", 1)[-1].split("?", 1)[0] if "://" in source else "inline"
        suffix = Path(name).suffix.lstrip(".").lower()
        return source, ImageInfo(width=0, height=0, format=suffix, size_bytes=0, filename=name)

    path = Path(source)
    data = path.read_bytes()
    with Image.open(path) as img:
        width, height = img.size
        fmt = (img.format or path.suffix.lstrip(".")).lower()

    mime_type = mimetypes.guess_type(path.name)[0] or f"image/{fmt}"
    image_ref = f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
    info = ImageInfo(
        width=width, height=height, format=fmt, size_bytes=len(data), filename=path.name
    )
    return image_ref, info


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vision-metadata",
        description="Generate title, description and keywords for an image.",
    )
    parser.add_argument("image", nargs="?", help="Image file path or URL")
    parser.add_argument("--property", help="Generate a single property (title, keywords, ...)")
    parser.add_argument("--prompt", help="Prompt text overriding stored rules for --property")
    parser.add_argument(
        "--rule",
        action="append",
        type=parse_rule,
        default=[],
        metavar="PROPERTY=PROMPT",
        help="Active prompt rule; repeatable",
    )
    parser.add_argument(
        "--combined", action="store_true", help="Query primary and secondary providers"
    )
    parser.add_argument(
        "--test-config", action="store_true", help="Run a synthetic configuration test"
    )
    parser.add_argument("--log-level", default=LOG_LEVEL)
    return parser


async def run(
    args: argparse.Namespace, image: tuple[str, ImageInfo] | None = None
) -> dict:
    client = MetadataClient(
        config=Configuration.from_env(),
        prompt_store=InMemoryPromptStore(args.rule or None),
    )

    if args.test_config:
        record = await client.test_configuration()
        return record.to_dict() if record else {"error": "Configuration test failed"}

    image_ref, info = image or load_image(args.image)

    if args.combined:
        combined = await client.generate_combined(image_ref, info)
        return {
            "primary": combined.primary.to_dict(),
            "secondary": combined.secondary.to_dict(),
        }

    if args.prompt:
        if not args.property:
            raise SystemExit("--prompt requires --property")
        record = await client.generate_for_custom_property(
            image_ref, info, args.property, args.prompt
        )
    else:
        record = await client.generate_single(image_ref, info, args.property)
    return record.to_dict()


def has_error(result: dict, combined: bool = False) -> bool:
    """Whether the record, or either record of a combined result, failed."""
    records = [result["primary"], result["secondary"]] if combined else [result]
    return any(record.get("error") for record in records)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the metadata CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.image and not args.test_config:
        parser.error("an image is required unless --test-config is given")

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    image = None
    if args.image and not args.test_config:
        try:
            image = load_image(args.image)
        except (OSError, UnidentifiedImageError) as e:
            parser.error(f"cannot read image {args.image}: {e}")

    try:
        result = asyncio.run(run(args, image))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        return 130

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 1 if has_error(result, args.combined and not args.test_config) else 0


if __name__ == "__main__":
    raise SystemExit(main())
