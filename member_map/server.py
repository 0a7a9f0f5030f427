"""メンバーAPI用HTTPサーバー（FastAPI）"""
from functools import lru_cache
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from .features.members.domain.models import MemberDraft
from .features.storage.clients.firestore_client import FirestoreClient
from .features.storage.repositories.member_repository import MemberRepository
from .infrastructure.config.settings import Settings
from .shared.exceptions.errors import StorageError, ValidationError
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

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE"]

# 開発用のサンプルメンバー
SAMPLE_MEMBERS = [
    MemberDraft(
        name="Jean Dupont",
        latitude=48.8566,
        longitude=2.3522,
        address="1 Rue de Rivoli, 75001 Paris, France",
        description="Membre fondateur",
        poste="Président",
        ville="Paris",
        pays="France",
    ),
    MemberDraft(
        name="Marie Martin",
        latitude=45.7640,
        longitude=4.8357,
        address="Place Bellecour, 69002 Lyon, France",
        description="Responsable communication",
        poste="Communication",
        ville="Lyon",
        pays="France",
    ),
    MemberDraft(
        name="Pierre Durand",
        latitude=43.2965,
        longitude=5.3698,
        address="Vieux Port, 13001 Marseille, France",
        description="Coordinateur régional",
        poste="Coordinateur",
        ville="Marseille",
        pays="France",
    ),
]

app = FastAPI(
    title="Member Map API",
    description="メンバーの登録・更新・削除と一覧取得を行うAPI",
    version="1.0.0",
)


class MemberCreateRequest(BaseModel):
    """POST /members のボディ"""

    name: str = Field(..., min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: str = ""
    description: Optional[str] = ""
    poste: Optional[str] = ""
    ville: Optional[str] = ""
    pays: Optional[str] = ""

    def to_draft(self) -> MemberDraft:
        return MemberDraft(
            name=self.name,
            latitude=self.latitude,
            longitude=self.longitude,
            address=self.address,
            description=self.description or "",
            poste=self.poste or "",
            ville=self.ville or "",
            pays=self.pays or "",
        )


class MemberUpdateRequest(BaseModel):
    """PUT /members のボディ（指定したフィールドのみ更新）"""

    name: Optional[str] = Field(default=None, min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    address: Optional[str] = None
    description: Optional[str] = None
    poste: Optional[str] = None
    ville: Optional[str] = None
    pays: Optional[str] = None

    @field_validator("name", "latitude", "longitude", mode="before")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        """name / latitude / longitude は省略できるが null にはできない"""
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value


@lru_cache(maxsize=1)
def get_member_repository() -> MemberRepository:
    """MemberRepositoryを取得（テストでは dependency_overrides で差し替える）"""
    firestore_client = FirestoreClient(
        project_id=settings.gcp_project_id,
        database_id=settings.firestore_database_id,
    )
    return MemberRepository(firestore_client, settings.firestore_members_collection)


def error_response(status_code: int, message: str) -> JSONResponse:
    """{"error": message} 形式のエラーレスポンス"""
    return JSONResponse(status_code=status_code, content={"error": message})


@app.on_event("startup")
async def startup_event() -> None:
    """起動時の処理"""
    logger.info("Application starting up")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Project: {settings.project_name}")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """シャットダウン時の処理"""
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


@app.get("/members")
def list_members(repository: MemberRepository = Depends(get_member_repository)) -> Any:
    """全メンバーを取得（created_at降順）"""
    members = repository.list_all()
    return {"members": [member.to_dict() for member in members]}


@app.post("/members", status_code=201)
def create_member(
    body: MemberCreateRequest,
    repository: MemberRepository = Depends(get_member_repository),
) -> Any:
    """メンバーを作成"""
    try:
        member = repository.create(body.to_draft())
    except ValidationError as e:
        return error_response(400, str(e))

    return {"member": member.to_dict()}


@app.put("/members")
def update_member(
    body: MemberUpdateRequest,
    member_id: Optional[str] = Query(default=None, alias="id"),
    repository: MemberRepository = Depends(get_member_repository),
) -> Any:
    """メンバーを部分更新"""
    if not member_id:
        return error_response(400, "Query parameter 'id' is required")

    partial = body.model_dump(exclude_unset=True)

    try:
        member = repository.update(member_id, partial)
    except ValidationError as e:
        return error_response(400, str(e))

    if member is None:
        return error_response(404, "Member not found")

    return {"member": member.to_dict()}


@app.delete("/members")
def delete_member(
    member_id: Optional[str] = Query(default=None, alias="id"),
    repository: MemberRepository = Depends(get_member_repository),
) -> Any:
    """メンバーを削除"""
    if not member_id:
        return error_response(400, "Query parameter 'id' is required")

    repository.delete(member_id)
    return {"message": "Member deleted"}


@app.api_route("/members", methods=["PATCH", "HEAD", "OPTIONS", "TRACE"], include_in_schema=False)
async def members_method_not_allowed(request: Request) -> JSONResponse:
    """未対応のメソッド"""
    return JSONResponse(
        status_code=405,
        content={"error": f"Method {request.method} Not Allowed"},
        headers={"Allow": ", ".join(ALLOWED_METHODS)},
    )


@app.post("/members/seed")
def seed_members(repository: MemberRepository = Depends(get_member_repository)) -> Any:
    """サンプルメンバーを登録（本番環境では無効）"""
    if settings.is_production:
        return error_response(403, "Seeding is disabled in production")

    members = repository.seed(SAMPLE_MEMBERS)
    return {
        "message": "Sample members added",
        "members": [member.to_dict() for member in members],
        "count": len(members),
    }


@app.exception_handler(StorageError)
async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    """ストレージエラー"""
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return error_response(500, f"Storage error: {exc}")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """グローバル例外ハンドラー"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
