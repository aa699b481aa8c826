# Configuration file for Sphinx Documentation

import importlib.util
from datetime import datetime
from datetime import timezone

from laser.contagion import __version__

# -----------------------------------------------------------------------------
# Disable Sphinx's epub3 builder *before* it imports anything else
# -----------------------------------------------------------------------------
spec = importlib.util.find_spec("sphinx.application")
if spec is not None:
    import sphinx.application

    be = list(getattr(sphinx.application, "builtin_extensions", []))
    if "sphinx.builders.epub3" in be:
        be.remove("sphinx.builders.epub3")
    sphinx.application.builtin_extensions = tuple(be)

# -----------------------------------------------------------------------------
# Project information
# -----------------------------------------------------------------------------
project = "LASER-CONTAGION"
author = "Institute for Disease Modeling"
copyright = f"{datetime.now(timezone.utc).year}, {author}"
release = __version__

epub_show_urls = "none"

# -----------------------------------------------------------------------------
# General configuration
# -----------------------------------------------------------------------------
extensions = [
    "sphinx.ext.autodoc",  # Render docstrings
    "sphinx.ext.autosummary",  # Generate summary tables
    "sphinx.ext.napoleon",  # Parse Google/Numpy-style docstrings
    "sphinx.ext.viewcode",  # Add [source] links
    "sphinx.ext.intersphinx",
    "sphinx_autodoc_typehints",  # Include type hints
    "sphinx_rtd_theme",
    "autoapi.extension",
]

autoapi_type = "python"
autoapi_dirs = ["../src/"]
autoapi_add_toctree_entry = True
autoapi_keep_files = True
autoapi_root = "autoapi"
autoapi_imported_members = False

autosummary_generate = True
autoclass_content = "both"
add_module_names = False

intersphinx_mapping = {
    "numpy": ("https://numpy.org/doc/stable/", None),
    "pandas": ("https://pandas.pydata.org/docs/", None),
}

templates_path = ["_templates"]
html_static_path = ["_static"]

# -----------------------------------------------------------------------------
# HTML output
# -----------------------------------------------------------------------------
html_theme = "sphinx_rtd_theme"

# -----------------------------------------------------------------------------
# LaTeX / PDF output
# -----------------------------------------------------------------------------
latex_engine = "xelatex"
latex_documents = [
    ("index", "LASER-CONTAGION.tex", "LASER-CONTAGION Documentation", author, "manual"),
]


# -----------------------------------------------------------------------------
# Workaround: prevent Sphinx from loading the epub3 builder
# -----------------------------------------------------------------------------
def setup(app):
    app.registry.builders.pop("epub", None)
    app.registry.builders.pop("epub3", None)
