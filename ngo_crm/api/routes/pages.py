"""Top-level pages and redirects"""

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from ngo_crm.api.deps import get_services, require_user
from ngo_crm.api.schemas import DashboardResponse, StubPageResponse
from ngo_crm.services.container import Services
from ngo_crm.services.dashboard import build_dashboard

router = APIRouter()

# Catch-all, included last so it never shadows a real route
fallback_router = APIRouter()

STUB_PAGES = {
    "receipts": "Receipts",
    "donations": "Donations",
    "help": "Help",
}


@router.get("/", include_in_schema=False)
def index():
    return RedirectResponse(url="/dashboard", status_code=307)


@router.get("/dashboard", response_model=DashboardResponse, dependencies=[Depends(require_user)])
def dashboard(services: Services = Depends(get_services)):
    stats = build_dashboard(services.persons.fetch_all(), services.contracts.fetch_all())
    return DashboardResponse(**stats._asdict())


def _stub(title: str):
    def page():
        return StubPageResponse(title=title)

    return page


for path, title in STUB_PAGES.items():
    router.add_api_route(
        f"/{path}",
        _stub(title),
        methods=["GET"],
        response_model=StubPageResponse,
        dependencies=[Depends(require_user)],
    )


@fallback_router.get("/{path:path}", include_in_schema=False)
def unknown_page(path: str):
    return RedirectResponse(url="/", status_code=307)
