"""
Analysis history persistence.

Supabase (PostgREST over HTTP) is used when SUPABASE_URL and SUPABASE_ANON_KEY
are set; the caller's access token is forwarded so the table's row-level
security decides what each user sees. Without Supabase, history goes to a
local SQLite file shared by a single local user.
"""

import json
import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional

import requests

from deepguard import config
from deepguard.errors import HistoryError

LOCAL_USER_ID = "local"

COLUMNS = [
    "id", "user_id", "analysis_type", "file_name", "file_size", "file_type",
    "is_deepfake", "confidence", "risk_level", "confidence_category",
    "analysis_quality", "analysis_time", "api_provider", "models_used",
    "quality_score", "processing_details", "recommendations", "limitations",
    "metadata", "image_analysis", "video_analysis", "audio_analysis",
    "raw_response", "created_at", "updated_at",
]
JSON_COLUMNS = {
    "models_used", "processing_details", "recommendations", "limitations",
    "metadata", "image_analysis", "video_analysis", "audio_analysis", "raw_response",
}
STATS_COLUMNS = ["analysis_type", "is_deepfake", "confidence", "risk_level"]


@dataclass(frozen=True)
class HistoryUser:
    id: str
    access_token: Optional[str] = None


def history_record(result, analysis_id: str, user_id: str) -> Dict:
    """Flatten an AnalysisResult into an analysis_history row"""
    wire = result.to_wire()
    details = wire.get("processingDetails", {})
    metadata = wire.get("metadata", {})
    now = datetime.now(timezone.utc).isoformat()

    if result.analysis_quality == "DEMO":
        provider = "demo"
    elif result.type == "audio":
        provider = "resemble"
    else:
        provider = "sightengine"

    return {
        "id": analysis_id,
        "user_id": user_id,
        "analysis_type": result.type,
        "file_name": metadata.get("file_name"),
        "file_size": metadata.get("file_size"),
        "file_type": metadata.get("file_type"),
        "is_deepfake": result.is_deepfake,
        "confidence": result.confidence,
        "risk_level": result.risk_level,
        "confidence_category": result.confidence_category,
        "analysis_quality": result.analysis_quality,
        "analysis_time": result.analysis_time,
        "api_provider": provider,
        "models_used": details.get("modelsUsed"),
        "quality_score": details.get("qualityScore"),
        "processing_details": details,
        "recommendations": result.recommendations,
        "limitations": result.limitations,
        "metadata": metadata,
        "image_analysis": wire.get("imageAnalysis"),
        "video_analysis": wire.get("videoAnalysis"),
        "audio_analysis": wire.get("audioAnalysis"),
        "raw_response": wire,
        "created_at": now,
        "updated_at": now,
    }


def compute_stats(rows: List[Dict]) -> Dict:
    total = len(rows)
    deepfakes = sum(1 for row in rows if row.get("is_deepfake"))
    confidences = [float(row["confidence"]) for row in rows if row.get("confidence") is not None]

    def count(key, *values):
        return sum(1 for row in rows if row.get(key) in values)

    return {
        "total_analyses": total,
        "deepfake_count": deepfakes,
        "authentic_count": total - deepfakes,
        "avg_confidence": sum(confidences) / len(confidences) if confidences else 0.0,
        "image_count": count("analysis_type", "image"),
        "video_count": count("analysis_type", "video"),
        "audio_count": count("analysis_type", "audio"),
        "high_risk_count": count("risk_level", "HIGH", "CRITICAL"),
        "medium_risk_count": count("risk_level", "MEDIUM"),
        "low_risk_count": count("risk_level", "LOW"),
    }


class HistoryStore:
    backend = "none"

    def save(self, user: HistoryUser, record: Dict) -> Dict:
        raise NotImplementedError

    def list(self, user: HistoryUser, limit: int = 50, offset: int = 0, search: Optional[str] = None) -> List[Dict]:
        raise NotImplementedError

    def get(self, user: HistoryUser, analysis_id: str) -> Optional[Dict]:
        raise NotImplementedError

    def delete(self, user: HistoryUser, analysis_id: str) -> bool:
        raise NotImplementedError

    def stats(self, user: HistoryUser) -> Dict:
        raise NotImplementedError


class SqliteHistoryStore(HistoryStore):
    backend = "sqlite"

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = str(db_path or config.HISTORY_DB)
        self.init_db()

    def _connect(self):
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise HistoryError(f"Cannot open history database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def _run(self, action: str, work):
        """Run work(conn) on a fresh connection, wrapping sqlite errors"""
        conn = self._connect()
        try:
            return work(conn)
        except sqlite3.Error as e:
            raise HistoryError(f"Failed to {action}: {e}") from e
        finally:
            conn.close()

    def init_db(self):
        self._run("initialise history database", self._create_schema)

    @staticmethod
    def _create_schema(conn):
        c = conn.cursor()
        c.execute('''
            CREATE TABLE IF NOT EXISTS analysis_history (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                analysis_type TEXT NOT NULL,
                file_name TEXT,
                file_size INTEGER,
                file_type TEXT,
                is_deepfake INTEGER NOT NULL,
                confidence REAL NOT NULL,
                risk_level TEXT,
                confidence_category TEXT,
                analysis_quality TEXT,
                analysis_time INTEGER,
                api_provider TEXT,
                models_used TEXT,
                quality_score REAL,
                processing_details TEXT,
                recommendations TEXT,
                limitations TEXT,
                metadata TEXT,
                image_analysis TEXT,
                video_analysis TEXT,
                audio_analysis TEXT,
                raw_response TEXT,
                created_at DATETIME,
                updated_at DATETIME
            )
        ''')
        c.execute("CREATE INDEX IF NOT EXISTS idx_history_user_created ON analysis_history(user_id, created_at)")
        conn.commit()

    @staticmethod
    def _decode(row: sqlite3.Row) -> Dict:
        record = dict(row)
        for column in JSON_COLUMNS:
            if record.get(column) is not None:
                record[column] = json.loads(record[column])
        record["is_deepfake"] = bool(record["is_deepfake"])
        return record

    def save(self, user: HistoryUser, record: Dict) -> Dict:
        values = []
        for column in COLUMNS:
            value = record.get(column)
            if column in JSON_COLUMNS and value is not None:
                value = json.dumps(value)
            values.append(value)

        def insert(conn):
            conn.execute(
                f"INSERT INTO analysis_history ({', '.join(COLUMNS)}) VALUES ({', '.join('?' for _ in COLUMNS)})",
                values,
            )
            conn.commit()

        self._run("save analysis", insert)
        return record

    def list(self, user: HistoryUser, limit: int = 50, offset: int = 0, search: Optional[str] = None) -> List[Dict]:
        query = "SELECT * FROM analysis_history WHERE user_id = ?"
        params = [user.id]

        if search and search.strip():
            search_term = f"%{search.strip()}%"
            query += " AND (file_name LIKE ? OR analysis_type LIKE ?)"
            params.extend([search_term, search_term])

        query += " ORDER BY created_at DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        rows = self._run("list analyses", lambda conn: conn.execute(query, params).fetchall())
        return [self._decode(row) for row in rows]

    def get(self, user: HistoryUser, analysis_id: str) -> Optional[Dict]:
        row = self._run("load analysis", lambda conn: conn.execute(
            "SELECT * FROM analysis_history WHERE id = ? AND user_id = ?",
            (analysis_id, user.id),
        ).fetchone())
        return self._decode(row) if row else None

    def delete(self, user: HistoryUser, analysis_id: str) -> bool:
        def remove(conn):
            c = conn.cursor()
            c.execute("DELETE FROM analysis_history WHERE id = ? AND user_id = ?", (analysis_id, user.id))
            conn.commit()
            return c.rowcount

        return self._run("delete analysis", remove) > 0

    def stats(self, user: HistoryUser) -> Dict:
        rows = self._run("compute history stats", lambda conn: conn.execute(
            f"SELECT {', '.join(STATS_COLUMNS)} FROM analysis_history WHERE user_id = ?",
            (user.id,),
        ).fetchall())
        return compute_stats([dict(row) for row in rows])


class SupabaseHistoryStore(HistoryStore):
    backend = "supabase"
    table = "analysis_history"

    def __init__(self, url: str, anon_key: str):
        self.url = url.rstrip("/")
        self.anon_key = anon_key

    def _headers(self, user: HistoryUser) -> Dict:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {user.access_token or self.anon_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, user: HistoryUser, params: Optional[Dict] = None, json_body=None, extra_headers=None):
        headers = self._headers(user)
        if extra_headers:
            headers.update(extra_headers)

        try:
            response = requests.request(
                method,
                f"{self.url}/rest/v1/{self.table}",
                headers=headers,
                params=params,
                json=json_body,
                timeout=config.HISTORY_TIMEOUT,
            )
        except requests.RequestException as e:
            raise HistoryError(f"Supabase request failed: {e}") from e

        if response.status_code >= 400:
            raise HistoryError(f"Supabase returned {response.status_code}: {response.text[:200]}")

        if not response.content:
            return None
        return response.json()

    def save(self, user: HistoryUser, record: Dict) -> Dict:
        rows = self._request(
            "POST", user,
            json_body=record,
            extra_headers={"Prefer": "return=representation"},
        )
        return rows[0] if rows else record

    def list(self, user: HistoryUser, limit: int = 50, offset: int = 0, search: Optional[str] = None) -> List[Dict]:
        params = {
            "select": "*",
            "user_id": f"eq.{user.id}",
            "order": "created_at.desc",
            "limit": limit,
            "offset": offset,
        }
        if search and search.strip():
            # PostgREST filter syntax reserves these characters
            term = re.sub(r"[(),*]", "", search.strip())
            params["or"] = f"(file_name.ilike.*{term}*,analysis_type.ilike.*{term}*)"
        return self._request("GET", user, params=params) or []

    def get(self, user: HistoryUser, analysis_id: str) -> Optional[Dict]:
        rows = self._request("GET", user, params={
            "select": "*",
            "id": f"eq.{analysis_id}",
            "user_id": f"eq.{user.id}",
            "limit": 1,
        })
        return rows[0] if rows else None

    def delete(self, user: HistoryUser, analysis_id: str) -> bool:
        rows = self._request(
            "DELETE", user,
            params={"id": f"eq.{analysis_id}", "user_id": f"eq.{user.id}"},
            extra_headers={"Prefer": "return=representation"},
        )
        return bool(rows)

    def stats(self, user: HistoryUser) -> Dict:
        rows = self._request("GET", user, params={
            "select": ",".join(STATS_COLUMNS),
            "user_id": f"eq.{user.id}",
        })
        return compute_stats(rows or [])

    def resolve_user(self, access_token: str) -> Optional[HistoryUser]:
        """Exchange a Supabase access token for the signed-in user's id"""
        try:
            response = requests.get(
                f"{self.url}/auth/v1/user",
                headers={"apikey": self.anon_key, "Authorization": f"Bearer {access_token}"},
                timeout=config.HISTORY_TIMEOUT,
            )
        except requests.RequestException as e:
            print(f"⚠️ Supabase user lookup failed: {e}")
            return None

        if response.status_code != 200:
            print(f"⚠️ Supabase rejected access token (status {response.status_code})")
            return None

        try:
            body = response.json()
        except ValueError:
            print("⚠️ Supabase user lookup returned a non-JSON body")
            return None

        user_id = body.get("id") if isinstance(body, dict) else None
        return HistoryUser(id=user_id, access_token=access_token) if user_id else None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_user(store: HistoryStore, authorization: Optional[str]) -> Optional[HistoryUser]:
    """
    Work out whose history a request touches.

    Supabase: the bearer token must belong to a signed-in user.
    SQLite: every request shares the local user.
    """
    if isinstance(store, SupabaseHistoryStore):
        token = bearer_token(authorization)
        return store.resolve_user(token) if token else None
    return HistoryUser(id=LOCAL_USER_ID)


_store: Optional[HistoryStore] = None


def get_history_store() -> HistoryStore:
    """Lazily build the process-wide history store"""
    global _store

    if _store is None:
        url, anon_key = config.supabase_settings()
        if url and anon_key:
            print(f"🗄️ Using Supabase history store at {url}")
            _store = SupabaseHistoryStore(url, anon_key)
        else:
            print(f"🗄️ Using local SQLite history store: {config.HISTORY_DB}")
            _store = SqliteHistoryStore(config.HISTORY_DB)

    return _store
