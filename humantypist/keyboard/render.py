from __future__ import annotations
import asyncio
import logging
from typing import Sequence, Tuple
from PIL import Image, ImageDraw

from .analysis import _quantile, inter_key_intervals_ms
from .telemetry import KeyPhase, KeystrokeLogEntry

_PHASE_COLORS = {
    KeyPhase.NORMAL: (64, 200, 255),
    KeyPhase.INSERTED: (255, 60, 60),
    KeyPhase.ERASED: (255, 200, 80),
}


async def save_typing_timeline_jpeg(
    entries: Sequence[KeystrokeLogEntry],
    outfile: str = "typing_timeline.jpg",
    *,
    width: int = 1200,
    height: int = 360,
    background_color: Tuple[int, int, int] = (12, 12, 14),
    canvas_margin: int = 20,
    annotate: bool = True,
) -> str:
    """
    Render a keystroke log as a timeline: one bar per keystroke at its time
    offset, bar height proportional to its hold, colored by phase (blue
    normal, red wrong chunk, amber backspace).
    Rendering is offloaded to a worker thread to avoid blocking the event loop.
    """
    snapshot = list(entries)

    def _render() -> str:
        image = Image.new("RGB", (width, height), background_color)
        draw = ImageDraw.Draw(image)

        if len(snapshot) < 2:
            if annotate:
                draw.text(
                    (canvas_margin, canvas_margin),
                    "No keystrokes recorded",
                    fill=(180, 180, 180),
                )
            image.save(outfile, format="JPEG", quality=92, optimize=True)
            return outfile

        t0 = snapshot[0].t
        span = max(1e-6, snapshot[-1].t - t0)
        plot_w = width - canvas_margin * 2
        baseline = height - canvas_margin - 20
        plot_h = baseline - canvas_margin
        max_hold = max([e.hold_ms for e in snapshot] + [1.0])

        draw.line(
            [(canvas_margin, baseline), (width - canvas_margin, baseline)],
            fill=(90, 90, 90),
            width=1,
        )

        for e in snapshot:
            x = canvas_margin + (e.t - t0) / span * plot_w
            bar = 6 + (plot_h - 6) * (e.hold_ms / max_hold)
            draw.line(
                [(x, baseline), (x, baseline - bar)],
                fill=_PHASE_COLORS[e.phase],
                width=2,
            )

        if annotate:
            ikis = inter_key_intervals_ms(snapshot)
            summary = (
                f"Keys: {len(snapshot)} | span {span:.2f}s | IKI ms "
                f"p50 {_quantile(ikis, 0.5):.0f} | p95 {_quantile(ikis, 0.95):.0f}"
            )
            draw.text(
                (canvas_margin, height - canvas_margin - 14),
                summary,
                fill=(200, 200, 200),
            )

        image.save(outfile, format="JPEG", quality=92, optimize=True)
        return outfile

    outfile_path = await asyncio.to_thread(_render)
    logging.getLogger(__name__).debug("Typing timeline saved to %s", outfile_path)
    return outfile_path
