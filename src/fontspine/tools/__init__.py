"""External-tool invocation layer."""

from fontspine.tools.args import flatten_args, options_to_args
from fontspine.tools.commands import (
    chlorophytum,
    otc2otf,
    otf2ttf,
    otfcc_build_as_is,
    otfcc_build_optimize,
    otfcc_dump,
    run_recipe,
    sanitize_ttf,
    seven_zip_compress,
    ttcize,
)
from fontspine.tools.files import copy, ensure_dir, move, remove, scratch
from fontspine.tools.runner import ToolRunner

__all__ = [
    "ToolRunner",
    "chlorophytum",
    "copy",
    "ensure_dir",
    "flatten_args",
    "move",
    "options_to_args",
    "otc2otf",
    "otf2ttf",
    "otfcc_build_as_is",
    "otfcc_build_optimize",
    "otfcc_dump",
    "remove",
    "run_recipe",
    "sanitize_ttf",
    "scratch",
    "seven_zip_compress",
    "ttcize",
]
