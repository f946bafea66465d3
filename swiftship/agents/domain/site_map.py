"""
Site Map
========

Pages of the Swift Ship web app the support agent may point users to,
grouped by category.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SitePage:
    title: str
    description: str
    path: str
    keywords: List[str] = field(default_factory=list)


@dataclass
class PageSuggestion:
    """A page the support agent recommends, with the model's reason."""
    path: str
    reason: str
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "reason": self.reason, "title": self.title}


SITE_MAP: Dict[str, List[SitePage]] = {
    "General": [
        SitePage("Dashboard", "Central hub showcasing key metrics, recent activities, and system alerts",
                 "/dashboard", ["dashboard", "metrics", "alerts"]),
        SitePage("Home", "Welcome page with quick links and recent updates", "/home", ["home", "main"]),
        SitePage("Inbox", "Message center for customer communications", "/inbox", ["inbox", "messages"]),
        SitePage("Settings", "Account and application preferences", "/settings", ["settings", "preferences"]),
        SitePage("Search", "Global search functionality", "/search", ["search", "find"]),
        SitePage("Notifications", "System and shipping notifications center", "/notifications",
                 ["notifications", "alerts"]),
        SitePage("Profile", "User profile management page", "/profile", ["profile", "account"]),
    ],
    "Documentation": [
        SitePage("Help Center", "Self-service help center with resources and guides", "/portal/help-center",
                 ["help", "faq", "guides"]),
        SitePage("Knowledge Base", "Browse articles covering platform usage and best practices",
                 "/portal/knowledge-base", ["knowledge", "articles", "how-to"]),
        SitePage("AI Support", "Chat interface with contextual troubleshooting and automated ticket creation",
                 "/portal/ai-support", ["help", "troubleshooting", "chatbot"]),
        SitePage("Portal Tickets", "Create and manage support tickets within the customer portal",
                 "/portal/tickets", ["tickets", "support"]),
        SitePage("Contact", "Live chat and contact form for support", "/portal/contact",
                 ["contact", "chat", "support"]),
    ],
    "Shipments": [
        SitePage("Shipments", "Manage and track your shipments", "/shipments", ["shipments", "tracking"]),
        SitePage("Pickup", "Schedule and manage pickup requests", "/pickup", ["pickup", "requests"]),
        SitePage("Quote", "Shipping quote calculator and request form", "/quote",
                 ["quote", "pricing", "calculator"]),
        SitePage("Analytics", "Business and shipping analytics dashboard", "/analytics",
                 ["analytics", "reports", "charts"]),
    ],
    "Billing": [
        SitePage("Upgrade Now", "Explore premium features and subscription options", "/upgrade-now",
                 ["upgrade", "premium"]),
        SitePage("Manage Quotes", "Review and manage your quotes", "/admin/quotes", ["quotes", "billing"]),
    ],
}


def site_map_as_dict() -> Dict[str, List[Dict[str, Any]]]:
    return {category: [asdict(page) for page in pages] for category, pages in SITE_MAP.items()}


def find_page(path: str) -> Optional[SitePage]:
    for pages in SITE_MAP.values():
        for page in pages:
            if page.path == path:
                return page
    return None


def validate_suggestions(raw: Any) -> List[PageSuggestion]:
    """
    Keep only well-formed suggestions for pages that exist.

    Accepts a list of {path, reason} dicts or a {"pages": [...]} wrapper.
    Duplicate paths are dropped.
    """
    if isinstance(raw, dict):
        raw = raw.get("pages", [])
    if not isinstance(raw, list):
        return []

    suggestions = []
    seen = set()
    for item in raw:
        if not isinstance(item, dict):
            continue
        path = str(item.get("path", "")).strip()
        page = find_page(path)
        if page is None or path in seen:
            continue
        seen.add(path)
        suggestions.append(PageSuggestion(path=path, reason=str(item.get("reason", "")), title=page.title))
    return suggestions
