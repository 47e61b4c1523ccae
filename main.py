"""Checker Gradient: pick two colours, preview the CSS gradient, copy it.

Usage
-----
$ pip install -e .
$ python main.py                 # starts on http://127.0.0.1:5000

Settings come from ``CHECKER_GRADIENT_*`` environment variables, e.g.
``CHECKER_GRADIENT_LOG_LEVEL=DEBUG`` or ``CHECKER_GRADIENT_WHEEL_SIZE=240``.
The colour maths, wheel rasterisation and drag handling all live server
side; the page only forwards pointer positions and renders what comes back.
"""

from __future__ import annotations

from checker_gradient.app import create_app

app = create_app()

if __name__ == "__main__":
    # single-threaded dev server: one event at a time per process
    app.run(debug=False, threaded=False)
