"""
Swagger UI mounted under /swagger/.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from base_api.config.server_config import ServerConfig

SWAGGER_PREFIX = "/swagger"
SWAGGER_DESCRIPTION = "Basic only internal methods!"
SWAGGER_UI_PARAMETERS = {
    "deepLinking": True,
    "docExpansion": "none",
}


def build_openapi_document(
    app: FastAPI, config: ServerConfig, version: str
) -> Dict[str, Any]:
    """
    Generate the OpenAPI document served at /swagger/doc.json.

    Args:
        app: Application whose routes are documented
        config: Resolved server configuration
        version: Service version

    Returns:
        OpenAPI document
    """
    return get_openapi(
        title=f"Swagger {config.app_name}",
        version=version,
        description=SWAGGER_DESCRIPTION,
        routes=app.routes,
        servers=[{"url": f"{config.url_scheme}://{config.api_host}"}],
    )


def build_swagger_router(
    app: FastAPI, config: ServerConfig, version: str
) -> APIRouter:
    """
    Routes for the swagger UI and its document.

    The UI loads the document from ``config.swagger_doc_url``, which points
    either at this listener directly or at the gateway path of the service.
    """
    router = APIRouter(prefix=SWAGGER_PREFIX, include_in_schema=False)
    document: Optional[Dict[str, Any]] = None

    @router.get("/doc.json")
    async def swagger_doc() -> JSONResponse:
        nonlocal document
        if document is None:
            document = build_openapi_document(app, config, version)
        return JSONResponse(document)

    @router.get("/")
    async def swagger_root() -> RedirectResponse:
        return RedirectResponse(url=f"{SWAGGER_PREFIX}/index.html")

    @router.get("/index.html")
    async def swagger_ui() -> HTMLResponse:
        return get_swagger_ui_html(
            openapi_url=config.swagger_doc_url,
            title=f"Swagger {config.app_name}",
            swagger_ui_parameters=SWAGGER_UI_PARAMETERS,
        )

    return router
