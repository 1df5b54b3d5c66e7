"""Content library - versioned service catalog and purchase terms."""

from typing import Dict

from proposal_engine.library.services import (
    SERVICE_LIBRARY_VERSION,
    get_template,
    list_templates,
    get_display_names,
)
from proposal_engine.library.terms import TERMS_VERSION, get_terms_block

# Version of the proposal document structure itself
TEMPLATE_VERSION = "2.0.0"


def get_library_info() -> Dict[str, str]:
    """Versions currently active, as stamped onto new proposals."""
    return {
        "template_version": TEMPLATE_VERSION,
        "service_library_version": SERVICE_LIBRARY_VERSION,
        "terms_version": TERMS_VERSION,
    }


__all__ = [
    "TEMPLATE_VERSION",
    "SERVICE_LIBRARY_VERSION",
    "TERMS_VERSION",
    "get_template",
    "list_templates",
    "get_display_names",
    "get_terms_block",
    "get_library_info",
]
