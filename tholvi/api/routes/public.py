from typing import Any

from fastapi import APIRouter, Depends

from tholvi.adapters.sqlite.repos import SQLiteSiteSettingsRepo
from tholvi.api.deps import get_rules, get_site_settings_repo
from tholvi.components.settings import GetSettingsInput, run_get
from tholvi.components.tiers import comparison_matrix, load_plans
from tholvi.domain.entities import SiteSettings
from tholvi.rules.models import Rules

router = APIRouter()


@router.get("/tiers")
def list_tiers(rules: Rules = Depends(get_rules)) -> dict[str, Any]:
    """Tier plans with prices and features, plus the comparison table."""
    plans = load_plans(rules.tiers)
    return {
        "plans": [
            {
                "tier": p.tier,
                "name": p.name,
                "label": p.label,
                "price": p.price,
                "highlighted": p.highlighted,
                "features": list(p.features),
            }
            for p in plans
        ],
        "comparison": comparison_matrix(plans),
    }


@router.get("/settings", response_model=SiteSettings)
def public_settings(
    repo: SQLiteSiteSettingsRepo = Depends(get_site_settings_repo),
) -> SiteSettings:
    """Payment details and community links. Defaults when unset or unreadable."""
    return run_get(GetSettingsInput(), repo=repo).settings
