#!/usr/bin/env python3
"""Capture a handwritten signature via a GUI drawing canvas.

Opens a tkinter window where the user draws their signature with the mouse.
Strokes go through SignatureCapture, so the window can be resized while
signing: the pad replays the strokes once resizing has settled.

Saves the strokes as JSON (input for rent.py --strokes) and, optionally,
the transparent-background PNG export.

Usage:
    python capture_signature.py <output.json> [--png out.png] [--width 600] [--height 200]

The user can:
  - Draw with mouse (click-and-drag)
  - Click "Clear" to start over
  - Click "Done" to save and exit (only once the signature is valid)
  - Close the window to cancel (exits with code 1)
"""

import argparse
import json
import logging
import sys
import tkinter as tk

from signature_pad import STROKE_WIDTH, Point, SignatureCapture, dump_recording

# Canvas border; <Configure> sizes include it on both sides
BORDER = 1


def surface_size(event_width: int, event_height: int, border: int = BORDER):
    """Drawable size of a canvas given its <Configure> size."""
    return event_width - 2 * border, event_height - 2 * border


def paint_dot(canvas, x, y):
    r = STROKE_WIDTH / 2
    canvas.create_oval(x - r, y - r, x + r, y + r, fill="black", outline="black")


def paint_segment(canvas, x0, y0, x1, y1):
    canvas.create_line(x0, y0, x1, y1, fill="black", width=STROKE_WIDTH,
                       capstyle=tk.ROUND, joinstyle=tk.ROUND)


def paint_strokes(canvas, strokes):
    """Wipe the canvas and paint strokes the way the pad rasterizes them."""
    canvas.delete("all")
    for stroke in strokes:
        pts = stroke.points
        if len(pts) == 1:
            paint_dot(canvas, pts[0].x, pts[0].y)
            continue
        for a, b in zip(pts, pts[1:]):
            paint_segment(canvas, a.x, a.y, b.x, b.y)


class TkScheduler:
    """Scheduler backed by the Tk event loop (after / after_cancel)."""

    def __init__(self, widget):
        self.widget = widget

    def schedule(self, delay_ms, callback):
        return self.widget.after(delay_ms, callback)

    def cancel(self, token):
        self.widget.after_cancel(token)


def capture_signature(width: int = 600, height: int = 200):
    """Open a signature capture window. Returns the pad, or None if cancelled."""
    result = {"pad": None}

    root = tk.Tk()
    root.title("Sign here")

    canvas = tk.Canvas(root, width=width, height=height, bg="white",
                       cursor="pencil", highlightthickness=BORDER, highlightbackground="#999")
    canvas.pack(padx=10, pady=(10, 5), fill=tk.BOTH, expand=True)

    pad = SignatureCapture(width, height, scheduler=TkScheduler(root))

    def redraw(_is_empty=None):
        paint_strokes(canvas, pad.visible_strokes())

    pad.subscribe(redraw)

    last_point = [None]

    def on_press(event):
        pad.begin_stroke(Point(event.x, event.y))
        paint_dot(canvas, event.x, event.y)
        last_point[0] = (event.x, event.y)
        status.config(text="")

    def on_drag(event):
        if last_point[0] is not None:
            x0, y0 = last_point[0]
            paint_segment(canvas, x0, y0, event.x, event.y)
        pad.extend_stroke(Point(event.x, event.y))
        last_point[0] = (event.x, event.y)

    def on_release(event):
        pad.end_stroke()
        last_point[0] = None

    def on_configure(event):
        size = surface_size(event.width, event.height)
        if size != (pad.width, pad.height):
            pad.resize(*size)

    def clear():
        pad.clear()
        status.config(text="")

    def done():
        if pad.is_empty():
            status.config(text="Signature is required", fg="#b00")
            return
        if not pad.is_valid():
            # Too short or too flat; probably an accidental click
            status.config(text="Please draw a complete signature (not just a dot)", fg="#b00")
            return
        result["pad"] = pad
        root.destroy()

    def cancel():
        root.destroy()

    canvas.bind("<ButtonPress-1>", on_press)
    canvas.bind("<B1-Motion>", on_drag)
    canvas.bind("<ButtonRelease-1>", on_release)
    canvas.bind("<Configure>", on_configure)

    # Buttons
    btn_frame = tk.Frame(root)
    btn_frame.pack(pady=(5, 10))

    tk.Button(btn_frame, text="Clear", command=clear, width=10).pack(side=tk.LEFT, padx=5)
    tk.Button(btn_frame, text="Done", command=done, width=10).pack(side=tk.LEFT, padx=5)
    tk.Button(btn_frame, text="Cancel", command=cancel, width=10).pack(side=tk.LEFT, padx=5)

    # Instruction label
    tk.Label(root, text="Draw your signature above, then click Done",
             fg="#666", font=("Helvetica", 11)).pack(pady=(0, 4))
    status = tk.Label(root, text="", font=("Helvetica", 10))
    status.pack(pady=(0, 8))

    root.protocol("WM_DELETE_WINDOW", cancel)
    root.mainloop()

    return result["pad"]


def main():
    parser = argparse.ArgumentParser(description="Capture a handwritten signature")
    parser.add_argument("output", help="Output strokes JSON path")
    parser.add_argument("--png", help="Also save the PNG export here")
    parser.add_argument("--width", type=int, default=600, help="Canvas width (default: 600)")
    parser.add_argument("--height", type=int, default=200, help="Canvas height (default: 200)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    pad = capture_signature(args.width, args.height)
    if pad is None:
        print(json.dumps({"status": "cancelled"}))
        sys.exit(1)

    with open(args.output, "w") as f:
        json.dump(dump_recording(pad), f)
    if args.png:
        with open(args.png, "wb") as f:
            f.write(pad.to_export().png)
    print(json.dumps({"status": "saved", "path": args.output, "points": pad.point_count()}))


if __name__ == "__main__":
    main()
