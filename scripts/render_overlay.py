from __future__ import annotations
import argparse
import mimetypes
import sys
from pathlib import Path

# Allow running from a checkout without installing.
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from circuitsense.errors import InferenceFailure
from circuitsense.inference import parse_analysis
from circuitsense.models import AssistantMode, NetCategory
from circuitsense.overlay import render_scene, scene_to_svg


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Render a saved board analysis JSON as an SVG overlay.")
    ap.add_argument("analysis", help="analysis JSON as returned by the vision model")
    ap.add_argument("-o", "--output", default="overlay.svg")
    ap.add_argument("--image", help="photo to place under the overlay")
    ap.add_argument("--mode", default=AssistantMode.INSPECTION.value, choices=[m.value for m in AssistantMode])
    ap.add_argument("--step", type=int, default=0, help="0-based probing step to draw in MEASUREMENT mode")
    ap.add_argument("--nets", choices=[c.value for c in NetCategory], help="highlight nets of this category")
    args = ap.parse_args(argv)

    try:
        result = parse_analysis(Path(args.analysis).read_text(encoding="utf-8"))
    except InferenceFailure as e:
        print(f"[render] {e}")
        return 1

    background = None
    mime = "image/jpeg"
    if args.image:
        background = Path(args.image).read_bytes()
        mime = mimetypes.guess_type(args.image)[0] or mime

    scene = render_scene(
        result,
        AssistantMode(args.mode),
        args.step,
        NetCategory(args.nets) if args.nets else None,
    )
    Path(args.output).write_text(scene_to_svg(scene, background=background, background_mime=mime), encoding="utf-8")
    print(f"[render] {sum(len(l.primitives) for l in scene)} primitives in {len(scene)} layers -> {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
