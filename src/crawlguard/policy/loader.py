"""
Load site policies from YAML files for offline jobs.

Expected layout (camelCase keys are accepted too):

    site_id: "42"
    site_url: https://example.com
    monetization_enabled: true
    allowed_bots: [openai, perplexity]
    pricing_per_request: "0.002"
"""

import logging
from pathlib import Path
from typing import Union

from ..config.sops_loader import load_yaml_file
from .exceptions import InvalidSitePolicyError
from .models import SiteMonetizationPolicy

logger = logging.getLogger(__name__)


def load_site_policy(path: Union[str, Path]) -> SiteMonetizationPolicy:
    """
    Read a SiteMonetizationPolicy from a YAML file.

    A top-level ``site`` key is unwrapped if present.

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidSitePolicyError: If the document is not a valid site record
    """
    try:
        data = load_yaml_file(Path(path))
    except ValueError as e:
        raise InvalidSitePolicyError(str(e)) from e

    if isinstance(data.get("site"), dict):
        data = data["site"]

    policy = SiteMonetizationPolicy.from_dict(data)
    logger.info(
        f"Loaded site policy from {path}: "
        f"monetization={'on' if policy.monetization_enabled else 'off'}, "
        f"{len(policy.allowed_bots)} allowed bots"
    )
    return policy
