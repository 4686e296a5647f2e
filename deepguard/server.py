import os
import re
import uuid
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Header, HTTPException, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from deepguard import config
from deepguard.analysis import analyze_upload, build_response
from deepguard.errors import HistoryError, UploadValidationError, VendorError
from deepguard.history import (
    HistoryStore,
    get_history_store,
    history_record,
    resolve_user,
)
from deepguard.media import content_type_for
from deepguard.report import build_report
from deepguard.uploads import cleanup_old_uploads, list_uploads, resolve_upload, save_upload
from deepguard.vendors import resemble, sightengine

config.print_environment_check()

app = FastAPI(title="DeepGuard", version=config.API_VERSION)

SUSPICIOUS_AGENT_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"bot", r"crawler", r"spider", r"scraper",
        r"curl", r"wget", r"python", r"java",
        r"sqlmap", r"nikto", r"nmap",
    )
]

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    # camera and microphone stay available to the capture page on our own origin
    "Permissions-Policy": "geolocation=(), microphone=(self), camera=(self)",
}


def client_ip(request: Request) -> str:
    fallback = request.client.host if request.client else "unknown"
    return request.headers.get("x-forwarded-for", fallback).split(",")[0].strip()


def error_body(error: str, message: Optional[str] = None) -> dict:
    body = {"success": False, "error": error}
    if message:
        body["message"] = message
    return body


# Middleware (last registered runs first)

@app.middleware("http")
async def validate_request(request: Request, call_next):
    if request.method not in config.ALLOWED_METHODS:
        return JSONResponse(
            status_code=405,
            content=error_body("Method not allowed", f"HTTP method {request.method} is not supported"),
        )

    if request.method == "POST":
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > config.MAX_REQUEST_SIZE:
            return JSONResponse(
                status_code=413,
                content=error_body("Payload too large", "Request body exceeds 10MB limit"),
            )

    if config.BLOCK_SUSPICIOUS_AGENTS:
        user_agent = request.headers.get("user-agent", "")
        if any(pattern.search(user_agent) for pattern in SUSPICIOUS_AGENT_PATTERNS):
            print(f"[SECURITY] Suspicious User-Agent blocked: {user_agent}")
            return JSONResponse(
                status_code=403,
                content=error_body("Access denied", "Request blocked for security reasons"),
            )

    return await call_next(request)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    if request.method == "POST" and ("/analyze" in request.url.path or "/upload" in request.url.path):
        print(f"[SECURITY] {request.method} {request.url.path} from {client_ip(request)} - "
              f"User-Agent: {request.headers.get('user-agent', '')}")

    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers[header] = value
    if "server" in response.headers:
        del response.headers["server"]
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=False,
    allow_methods=config.ALLOWED_METHODS,
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)


# Error envelopes

@app.exception_handler(UploadValidationError)
async def upload_validation_handler(request: Request, exc: UploadValidationError):
    print(f"⚠️ Upload rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


@app.exception_handler(HistoryError)
async def history_error_handler(request: Request, exc: HistoryError):
    print(f"❌ History error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content=error_body("History service unavailable", str(exc)))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=error_body("Validation error", str(exc.errors())))


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    print(f"[ERROR] {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=error_body("Internal server error", "An unexpected error occurred"))


# Helpers

def require_user(store: HistoryStore, authorization: Optional[str]):
    user = resolve_user(store, authorization)
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def save_to_history(authorization: Optional[str], result, analysis_id: str) -> str:
    """Best-effort history write; the outcome becomes a processing note"""
    try:
        store = get_history_store()
        user = resolve_user(store, authorization)
        if user is None:
            return "History not saved: sign in to keep analysis history"
        store.save(user, history_record(result, analysis_id, user.id))
    except HistoryError as e:
        print(f"⚠️ Analysis history save failed (non-critical): {e}")
        return f"History not saved: {e}"

    return "Analysis saved to history"


# Endpoints

@app.get("/api/ping")
async def ping():
    return {"message": config.PING_MESSAGE}


@app.get("/api/status")
async def status():
    """Which vendor credentials are configured (the client shows a demo banner otherwise)"""
    return {
        "sightengineConfigured": config.sightengine_configured(),
        "resembleConfigured": config.resemble_configured(),
        "supabaseConfigured": config.supabase_configured(),
        "historyBackend": "supabase" if config.supabase_configured() else "sqlite",
        "message": "Deepfake Detection API Ready",
    }


@app.post("/api/analyze")
def analyze_media(
    file: Optional[UploadFile] = File(None),
    authorization: Optional[str] = Header(None),
):
    analysis_id = str(uuid.uuid4())

    # 1. Validate + store the upload
    saved = save_upload(file)

    # 2. Vendor analysis (demo fallback handled inside)
    try:
        result = analyze_upload(saved)
    except VendorError as e:
        print(f"❌ Analysis failed: {e}")
        print(f"📁 File kept after error for debugging: {saved.path}")
        response = build_response(error=e.message, analysis_id=analysis_id)
        return JSONResponse(status_code=500, content=response.to_wire())
    except Exception as e:
        print(f"❌ Unexpected analysis error: {type(e).__name__}: {e}")
        print(f"📁 File kept after error for debugging: {saved.path}")
        response = build_response(error="Internal server error", analysis_id=analysis_id)
        return JSONResponse(status_code=500, content=response.to_wire())

    # 3. Keep the file for viewing and record history
    print(f"📁 File kept for viewing: {saved.path}")
    notes = [
        f"File available at /api/files/{saved.filename}",
        save_to_history(authorization, result, analysis_id),
    ]

    return build_response(result=result, processing_notes=notes, analysis_id=analysis_id).to_wire()


@app.post("/api/debug-upload")
def debug_upload(file: Optional[UploadFile] = File(None)):
    """Check that an upload makes it to disk intact"""
    saved = save_upload(file)
    print(f"🔍 Debug upload: {saved.original_name} ({saved.content_type}) -> {saved.path}")

    return {
        "success": True,
        "message": "File upload debug completed",
        "fileInfo": {
            "originalname": saved.original_name,
            "mimetype": saved.content_type,
            "size": saved.size,
            "category": saved.category,
            "filename": saved.filename,
            "exists": saved.path.exists(),
        },
    }


@app.get("/api/test-sightengine")
def test_sightengine():
    api_user, api_secret = config.sightengine_credentials()
    if not (api_user and api_secret):
        return {
            "success": True,
            "message": "Sightengine API credentials not configured - running in demo mode",
            "credentials_present": False,
        }

    try:
        data = sightengine.test_credentials(api_user, api_secret)
    except VendorError as e:
        print(f"❌ Sightengine API test error: {e}")
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": e.message,
            "details": e.payload,
        })

    return {
        "success": True,
        "message": "Sightengine API test successful",
        "data": data,
        "credentials_valid": data.get("status") == "success",
    }


@app.get("/api/test-resemble")
def test_resemble():
    api_key = config.resemble_api_key()
    if not api_key:
        return {
            "success": True,
            "message": "Resemble AI API credentials not configured - running in demo mode",
            "credentials_present": False,
        }

    try:
        data = resemble.test_credentials(api_key)
    except VendorError as e:
        print(f"❌ Resemble AI API test error: {e}")
        return JSONResponse(status_code=500, content={
            "success": False,
            "error": "Resemble AI API test failed",
            "details": {
                "status": e.status_code,
                "data": e.payload,
                "message": e.message,
            },
        })

    return {
        "success": True,
        "message": "Resemble AI API test successful",
        "data": data,
        "credentials_valid": True,
    }


@app.get("/api/files")
def list_files():
    files = list_uploads()
    return {"success": True, "files": files, "count": len(files)}


@app.get("/api/files/{filename}")
def serve_file(filename: str):
    print(f"[FILE_SERVE] Request for file: {filename}")

    try:
        filepath = resolve_upload(filename)
    except PermissionError:
        print("[FILE_SERVE] Access denied - path traversal attempt")
        raise HTTPException(status_code=403, detail="Access denied")
    except FileNotFoundError:
        print(f"[FILE_SERVE] File not found: {filename}")
        raise HTTPException(status_code=404, detail="File not found")

    print(f"[FILE_SERVE] Serving file: {filepath} ({filepath.stat().st_size} bytes)")
    return FileResponse(
        filepath,
        media_type=content_type_for(filename),
        headers={"Cache-Control": "public, max-age=3600"},
    )


@app.post("/api/cleanup-files")
def cleanup_files():
    """Maintenance endpoint: delete uploads older than the retention window"""
    try:
        cleaned = cleanup_old_uploads()
    except OSError as e:
        print(f"❌ Cleanup error: {e}")
        return JSONResponse(status_code=500, content=error_body("Cleanup failed"))

    return {
        "success": True,
        "message": f"Cleaned up {cleaned} old files",
        "cleanedCount": cleaned,
    }


@app.get("/api/history")
def list_history(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    search: Optional[str] = None,
    authorization: Optional[str] = Header(None),
    store: HistoryStore = Depends(get_history_store),
):
    user = require_user(store, authorization)
    items = store.list(user, limit=limit, offset=offset, search=search)
    return {"success": True, "items": items, "count": len(items), "limit": limit, "offset": offset}


@app.get("/api/history/stats")
def history_stats(
    authorization: Optional[str] = Header(None),
    store: HistoryStore = Depends(get_history_store),
):
    user = require_user(store, authorization)
    return {"success": True, "stats": store.stats(user)}


@app.get("/api/history/{analysis_id}")
def get_history_item(
    analysis_id: str,
    authorization: Optional[str] = Header(None),
    store: HistoryStore = Depends(get_history_store),
):
    user = require_user(store, authorization)
    record = store.get(user, analysis_id)
    if not record:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return {"success": True, "item": record}


@app.get("/api/history/{analysis_id}/report")
def get_history_report(
    analysis_id: str,
    authorization: Optional[str] = Header(None),
    store: HistoryStore = Depends(get_history_store),
):
    user = require_user(store, authorization)
    record = store.get(user, analysis_id)
    if not record:
        raise HTTPException(status_code=404, detail="Analysis not found")
    if not record.get("raw_response"):
        raise HTTPException(status_code=422, detail="Stored analysis has no result to report on")
    return {"success": True, "report": build_report(record["raw_response"]).to_wire()}


@app.delete("/api/history/{analysis_id}")
def delete_history_item(
    analysis_id: str,
    authorization: Optional[str] = Header(None),
    store: HistoryStore = Depends(get_history_store),
):
    user = require_user(store, authorization)
    if not store.delete(user, analysis_id):
        raise HTTPException(status_code=404, detail="Analysis not found")
    return {"success": True, "message": f"Deleted analysis {analysis_id}"}


# Mount frontend static files AFTER all API routes are defined
if os.path.exists(config.FRONTEND_DIST):
    assets_dir = os.path.join(config.FRONTEND_DIST, "assets")
    if os.path.exists(assets_dir):
        app.mount("/assets", StaticFiles(directory=assets_dir), name="assets")

    # Catch-all route for React Router (SPA) - must be last
    @app.get("/{full_path:path}")
    async def serve_react_app(full_path: str):
        if full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not found")
        return FileResponse(os.path.join(config.FRONTEND_DIST, "index.html"))


def main():
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
