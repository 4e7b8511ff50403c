#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Write the Pygments stylesheet used for highlighted code blocks.

    python scripts/gen_pygments_css.py [style]
"""
# -----------------------------------------------------------------------------

import sys
from pathlib import Path

from pygments.formatters import HtmlFormatter


TARGET = Path(__file__).resolve().parent.parent / "wicked" / "static" / "css" / "pygments.css"


def main(style: str = "friendly") -> None:
    css = HtmlFormatter(style=style).get_style_defs(".highlight")
    TARGET.write_text(css)
    print(f"Written {TARGET}")


if __name__ == "__main__":
    main(*sys.argv[1:2])
