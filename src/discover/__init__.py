"""discover: document pipelines for a project discovery site.

Runs dependency-ordered pipelines over immutable documents, enriches
projects with GitHub issue data, and generates Atom/RSS news feeds.
"""

__version__ = "0.1.0"
