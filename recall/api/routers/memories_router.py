"""
Memories router.

Endpoints for:
- Memory CRUD (multipart form, optional photo)
- Memory statistics
- Extracted facts
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from loguru import logger
from pydantic import AliasChoices, BaseModel, Field

from recall.api.dependencies import get_memory_store
from recall.db.memory_store import MemoryStore
from recall.uploads import delete_photo, save_photo

router = APIRouter()


# ========================================
# Request/Response Models
# ========================================


class FactCreateRequest(BaseModel):
    """Request model for attaching a fact to a memory."""

    fact_text: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("fact_text", "factText")
    )
    confidence_score: float = Field(
        0.8,
        ge=0,
        le=1,
        validation_alias=AliasChoices("confidence_score", "confidenceScore"),
    )


def _parse_tags(raw: Optional[str]) -> Optional[list[str]]:
    """Tags arrive as a JSON array string or a comma-separated list."""
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return []
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Tags must be a JSON array of strings")
        if not isinstance(parsed, list):
            raise HTTPException(status_code=400, detail="Tags must be a JSON array of strings")
        return [str(t) for t in parsed]
    return [t.strip() for t in raw.split(",") if t.strip()]


def _store_photo(photo: Optional[UploadFile]) -> Optional[str]:
    if photo is None or not photo.filename:
        return None
    stored = save_photo(photo.file, photo.filename, photo.content_type)
    return stored.url


# ========================================
# Memories
# ========================================


@router.get("")
def list_memories(
    category: Optional[str] = Query(None, description="Exact category"),
    search: Optional[str] = Query(None, description="Substring of title or description"),
    date_from: Optional[datetime] = Query(None, description="Logged at or after"),
    date_to: Optional[datetime] = Query(None, description="Logged at or before"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    store: MemoryStore = Depends(get_memory_store),
) -> dict[str, Any]:
    """List memories, newest first. Filters are combined with AND."""
    memories = store.list_memories(
        category=category,
        search=search,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )
    return {"success": True, "data": [m.to_dict() for m in memories], "count": len(memories)}


@router.get("/stats/overview")
def memory_stats(store: MemoryStore = Depends(get_memory_store)) -> dict[str, Any]:
    return {"success": True, "data": store.get_memory_stats()}


@router.get("/{memory_id}")
def get_memory(memory_id: int, store: MemoryStore = Depends(get_memory_store)) -> dict[str, Any]:
    memory = store.get_memory(memory_id)
    if memory is None:
        raise HTTPException(status_code=404, detail="Memory not found")

    data = memory.to_dict()
    data["extracted_facts"] = [f.to_dict() for f in store.get_extracted_facts(memory_id)]
    return {"success": True, "data": data}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_memory(
    title: str = Form(""),
    description: str = Form(""),
    category: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    store: MemoryStore = Depends(get_memory_store),
) -> dict[str, Any]:
    """Create a memory from a multipart form with an optional ``photo`` file."""
    if not title.strip():
        raise HTTPException(status_code=400, detail="Title is required")
    tag_list = _parse_tags(tags)

    photo_url = _store_photo(photo)
    try:
        memory = store.create_memory(
            title=title,
            description=description,
            category=category,
            tags=tag_list,
            location=location,
            photo_path=photo_url,
        )
    except Exception:  # Intentionally broad - remove the orphaned photo before re-raising
        delete_photo(photo_url)
        raise

    return {"success": True, "data": memory.to_dict(), "message": "Memory created successfully"}


@router.put("/{memory_id}")
def update_memory(
    memory_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    store: MemoryStore = Depends(get_memory_store),
) -> dict[str, Any]:
    """Update the supplied fields; a new photo replaces the old one."""
    existing = store.get_memory(memory_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Memory not found")

    changes: dict[str, Any] = {
        field: value
        for field, value in {
            "title": title,
            "description": description,
            "category": category,
            "location": location,
        }.items()
        if value is not None
    }
    tag_list = _parse_tags(tags)
    if tag_list is not None:
        changes["tags"] = tag_list

    old_photo = existing.photo_path
    photo_url = _store_photo(photo)
    if photo_url:
        changes["photo_path"] = photo_url

    try:
        memory = store.update_memory(memory_id, **changes)
    except ValueError as e:
        delete_photo(photo_url)
        raise HTTPException(status_code=400, detail=str(e))

    if photo_url and old_photo:
        delete_photo(old_photo)

    return {"success": True, "data": memory.to_dict(), "message": "Memory updated successfully"}


@router.delete("/{memory_id}")
def delete_memory(memory_id: int, store: MemoryStore = Depends(get_memory_store)) -> dict[str, Any]:
    memory = store.get_memory(memory_id)
    if memory is None:
        raise HTTPException(status_code=404, detail="Memory not found")

    photo_path = memory.photo_path
    store.delete_memory(memory_id)
    delete_photo(photo_path)
    return {"success": True, "message": "Memory deleted successfully"}


# ========================================
# Extracted Facts
# ========================================


@router.post("/{memory_id}/facts", status_code=status.HTTP_201_CREATED)
def add_fact(
    memory_id: int,
    request: FactCreateRequest,
    store: MemoryStore = Depends(get_memory_store),
) -> dict[str, Any]:
    try:
        fact = store.add_extracted_fact(memory_id, request.fact_text, request.confidence_score)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if fact is None:
        raise HTTPException(status_code=404, detail="Memory not found")

    logger.info("Added fact {} to memory {}", fact.id, memory_id)
    return {"success": True, "data": fact.to_dict(), "message": "Fact added successfully"}
