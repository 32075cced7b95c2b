"""HTTPサーバー（FastAPI）"""
import threading
from typing import Any, Literal, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from .features.distance.orchestrator import DistanceOrchestrator
from .features.distance.services.distance_service import DistanceService
from .infrastructure.config.settings import Settings
from .shared.exceptions.errors import (
    DistanceError,
    GeocodingError,
    HTTPError,
    NoRouteFoundError,
    NotFoundError,
    RoutingError,
    ValidationError,
)
from .shared.logging.config import get_logger, setup_logging

# 設定を読み込み
settings = Settings()

# ロギングを設定
setup_logging(
    level=settings.log_level,
    enable_cloud_logging=settings.gcp_logging_enabled,
    project_id=settings.gcp_project_id,
)
logger = get_logger(__name__)

# FastAPIアプリケーションを作成
app = FastAPI(
    title="geodistance",
    description="住所・座標間の距離、方位、ルートを計算するサービス",
    version="1.0.0",
)

_orchestrator: Optional[DistanceOrchestrator] = None
_orchestrator_lock = threading.Lock()


def get_distance_service() -> DistanceService:
    """距離サービスを取得（初回リクエスト時に生成）"""
    global _orchestrator

    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = DistanceOrchestrator(settings)
    return _orchestrator.distance_service


def status_code_for(exc: DistanceError) -> int:
    """ドメイン例外をHTTPステータスコードに変換"""
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, (NotFoundError, NoRouteFoundError)):
        return 404
    if isinstance(exc, (GeocodingError, RoutingError, HTTPError)):
        return 502
    return 500


@app.on_event("startup")
async def startup_event() -> None:
    """起動時の処理"""
    logger.info("Application starting up")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Project: {settings.project_name}")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """シャットダウン時の処理"""
    global _orchestrator

    with _orchestrator_lock:
        if _orchestrator is not None:
            _orchestrator.close()
            _orchestrator = None
    logger.info("Application shutting down")


@app.get("/")
async def root() -> dict[str, Any]:
    """ルートエンドポイント"""
    return {
        "service": settings.project_name,
        "version": "1.0.0",
        "status": "running",
        "environment": settings.environment,
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """ヘルスチェックエンドポイント"""
    return {"status": "healthy"}


@app.get("/geocode")
def geocode(
    address: str = Query(..., min_length=1),
    service: DistanceService = Depends(get_distance_service),
) -> dict[str, Any]:
    """住所を座標に変換"""
    logger.info(f"Received geocode request: {address}")
    return service.geocode(address).to_dict()


@app.get("/reverse")
def reverse(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    service: DistanceService = Depends(get_distance_service),
) -> dict[str, Any]:
    """座標を住所に変換"""
    address = service.reverse(lat, lon)
    if address is None:
        raise NotFoundError(f"{lat},{lon}")
    return {"latitude": lat, "longitude": lon, "address": address}


@app.get("/distance")
def distance(
    origin: str = Query(..., alias="from"),
    destination: str = Query(..., alias="to"),
    unit: Optional[str] = None,
    formula: Literal["haversine", "vincenty"] = "haversine",
    service: DistanceService = Depends(get_distance_service),
) -> dict[str, Any]:
    """
    2地点間の直線距離

    方位と8方位の記号も合わせて返す
    """
    if formula == "vincenty":
        result = service.between_vincenty(origin, destination, unit)
    else:
        result = service.between(origin, destination, unit)

    bearing = service.calculator.bearing(result.from_coordinate, result.to_coordinate)

    data = result.to_dict()
    data["formula"] = formula
    data["bearing"] = round(bearing, 2)
    data["direction"] = service.calculator.compass_direction(bearing)
    return data


@app.get("/route")
def route(
    origin: str = Query(..., alias="from"),
    destination: str = Query(..., alias="to"),
    mode: Optional[str] = None,
    service: DistanceService = Depends(get_distance_service),
) -> dict[str, Any]:
    """道路網に沿ったルート"""
    return service.route(origin, destination, mode).to_dict()


@app.exception_handler(DistanceError)
async def distance_error_handler(request: Request, exc: DistanceError) -> JSONResponse:
    """ドメイン例外ハンドラー"""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"Request failed: {request.url.path} - {exc}")
    else:
        logger.warning(f"Request rejected: {request.url.path} - {exc}")

    return JSONResponse(
        status_code=status_code,
        content={"message": type(exc).__name__, "detail": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """グローバル例外ハンドラー"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error", "detail": str(exc)},
    )


def main() -> None:
    """uvicornでサーバーを起動"""
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
