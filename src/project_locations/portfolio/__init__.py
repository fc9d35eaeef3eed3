"""
Read-only portfolio overview of project locations.
"""

from .classifier import PortfolioClassification, classify
from .renderer import DetailView, PortfolioRenderer, detail_view, popup_html, status_panel_html

__all__ = [
    "PortfolioClassification",
    "classify",
    "PortfolioRenderer",
    "DetailView",
    "detail_view",
    "popup_html",
    "status_panel_html",
]
