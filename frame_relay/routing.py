import os
import pkgutil
from importlib import import_module

from fastapi import APIRouter

from frame_relay.logging import logger

# Track which modules have been registered to avoid duplicate log messages
_registered_modules: set[str] = set()


def _include_package_routers(
    main_router: APIRouter, package_dir: str, package: str
) -> None:
    for _, module, _ in pkgutil.iter_modules([package_dir]):
        router_module = import_module(f".{module}", package=package)
        main_router.include_router(router_module.router)

        qualified = f"{package}.{module}"
        if qualified not in _registered_modules:
            logger.info(f'Register "{qualified}" router')
            _registered_modules.add(qualified)


def collect_subrouters() -> APIRouter:
    """
    Collects every HTTP and WebSocket router of the application.

    Each module under `api/http` and `api/ws/consumers` must expose a
    module-level `router`; all of them are included into one APIRouter.
    """
    main_router: APIRouter = APIRouter()

    app_dir = os.path.dirname(__file__)
    app_name = os.path.basename(app_dir)

    _include_package_routers(
        main_router, f"{app_dir}/api/http", f"{app_name}.api.http"
    )
    _include_package_routers(
        main_router,
        f"{app_dir}/api/ws/consumers",
        f"{app_name}.api.ws.consumers",
    )

    return main_router
