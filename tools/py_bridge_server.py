import sys
import importlib
import logging
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))


# Fail loudly and helpfully if required Python packages are missing.
def _require_modules(mods):
    missing = []
    for m in mods:
        try:
            importlib.import_module(m)
        except Exception:
            missing.append(m)
    if missing:
        print("\nERROR: Missing required Python package(s): {}".format(', '.join(missing)))
        print("Install them with:")
        print("  python -m pip install -e .")
        print("If you don't have Python, download it from https://www.python.org/downloads/")
        sys.exit(1)


_require_modules(['flask', 'numpy', 'PIL'])

from RSCE.bridge import create_app


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    host = os.environ.get('RSCE_BRIDGE_HOST', '127.0.0.1')
    port = int(os.environ.get('PORT', 8080))

    app = create_app()
    logging.getLogger('RSCE.bridge').info('SSTV bridge listening on %s:%d', host, port)
    app.run(host=host, port=port)
