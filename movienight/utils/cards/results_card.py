from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import date, timedelta

from PIL import Image, ImageDraw, ImageFont


@dataclass(frozen=True, slots=True)
class CardPlacement:
    rank: int  # 1..2
    title: str
    votes: int


def _try_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """
    Tries common system fonts, falls back to the PIL default.
    """
    candidates = [
        "C:\\Windows\\Fonts\\segoeui.ttf",
        "C:\\Windows\\Fonts\\arial.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    ]
    for path in candidates:
        try:
            return ImageFont.truetype(path, size=size)
        except OSError:
            continue
    return ImageFont.load_default()


def _text(draw: ImageDraw.ImageDraw, xy: tuple[int, int], s: str, font, fill=(230, 230, 235)) -> None:
    draw.text(xy, s, font=font, fill=fill)


def _fit(draw: ImageDraw.ImageDraw, s: str, font, max_width: int) -> str:
    if draw.textlength(s, font=font) <= max_width:
        return s
    while s and draw.textlength(s + "...", font=font) > max_width:
        s = s[:-1]
    return s.rstrip() + "..."


def render_results_card(
    *,
    week: str,
    week_start: date,
    placements: list[CardPlacement],
    title: str = "Movie Night",
) -> bytes:
    """
    Returns PNG bytes: header with the week, then one row per placement.
    """

    W, H = 1200, 675  # 16:9
    pad = 48

    img = Image.new("RGB", (W, H), (17, 19, 28))
    draw = ImageDraw.Draw(img)

    font_title = _try_font(56)
    font_sub = _try_font(28)
    font_row = _try_font(40)
    font_small = _try_font(22)

    # Header
    header_h = 170
    draw.rounded_rectangle(
        (pad, pad, W - pad, pad + header_h),
        radius=28,
        fill=(29, 32, 46),
        outline=(52, 56, 78),
        width=2,
    )

    week_end = week_start + timedelta(days=6)
    _text(draw, (pad + 32, pad + 28), title, font_title, fill=(250, 204, 21))
    _text(
        draw,
        (pad + 32, pad + 104),
        f"{week}  ·  {week_start.isoformat()} → {week_end.isoformat()}",
        font_sub,
        fill=(170, 175, 195),
    )

    body_top = pad + header_h + 26
    draw.rounded_rectangle(
        (pad, body_top, W - pad, H - pad),
        radius=28,
        fill=(29, 32, 46),
        outline=(52, 56, 78),
        width=2,
    )

    _text(draw, (pad + 36, body_top + 28), "Place", font_small, fill=(120, 125, 150))
    _text(draw, (pad + 190, body_top + 28), "Movie", font_small, fill=(120, 125, 150))
    _text(draw, (W - pad - 200, body_top + 28), "Votes", font_small, fill=(120, 125, 150))

    row_y = body_top + 72
    row_h = 140
    rank_labels = {1: "1st", 2: "2nd"}
    rank_colors = {1: (250, 204, 21), 2: (203, 213, 225)}
    title_width = W - 2 * pad - 190 - 240

    for i in range(2):
        y1 = row_y + i * row_h
        y2 = y1 + row_h - 16

        if i % 2 == 0:
            draw.rounded_rectangle((pad + 20, y1, W - pad - 20, y2), radius=22, fill=(38, 42, 60))

        if i < len(placements):
            p = placements[i]
            _text(draw, (pad + 40, y1 + 40), rank_labels.get(p.rank, str(p.rank)), font_row,
                  fill=rank_colors.get(p.rank, (230, 230, 235)))
            _text(draw, (pad + 190, y1 + 40), _fit(draw, p.title, font_row, title_width), font_row)
            _text(draw, (W - pad - 200, y1 + 40), str(p.votes), font_row)
        else:
            _text(draw, (pad + 40, y1 + 40), "-", font_row, fill=(90, 95, 115))
            _text(draw, (pad + 190, y1 + 40), "-", font_row, fill=(90, 95, 115))

    _text(draw, (pad + 36, H - pad - 34), "Family Movie Night", font_small, fill=(90, 95, 115))

    buf = io.BytesIO()
    img.save(buf, format="PNG", optimize=True)
    return buf.getvalue()
