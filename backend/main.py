"""FastAPI entrypoint for the PhraseLink backend."""

from __future__ import annotations

import asyncio
import logging

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app_state import PhraseLinkAppState
from config import load_settings
from models import (
    CompleteRequest,
    CompleteResponsePayload,
    CreateNoteRequest,
    DeleteNoteRequest,
    EntryPayload,
    IndexEntry,
    LinkRequest,
    LinkResponsePayload,
    NoteContentPayload,
    NotesResponsePayload,
    OpenVaultRequest,
    RebuildResponsePayload,
    RenameNoteRequest,
    ResolveRequest,
    ResolveResponsePayload,
    SpanPayload,
    SuggestRequest,
    SuggestResponsePayload,
    UpdateNoteRequest,
)

settings = load_settings()
logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
log = logging.getLogger("phraselink.api")

app = FastAPI(title="PhraseLink Backend", description="Phrase-to-link suggestions for markdown vaults")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

state = PhraseLinkAppState(settings)


def _span_payload(span) -> SpanPayload | None:
    if span is None:
        return None
    return SpanPayload(start=span.start, end=span.end, query=span.query)


@app.get("/", tags=["health"])
async def root():
    return {"status": "ok", "message": "PhraseLink backend is running"}


@app.get("/health", tags=["health"])
async def health():
    links = state.current().links
    return {
        "status": "ok",
        "message": "PhraseLink backend is running",
        "index_keys": len(links.index),
        "indexing": links.index.is_building,
    }


@app.get("/notes", response_model=NotesResponsePayload, tags=["notes"])
async def notes():
    try:
        return state.current().notes.tree()
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.get("/note/{note_id:path}", response_model=NoteContentPayload, tags=["notes"])
async def get_note(note_id: str):
    try:
        return state.current().notes.get_note(note_id)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/update-note", tags=["notes"])
async def update_note(request: UpdateNoteRequest):
    try:
        record = state.current().notes.save_note(request)
        return {"success": True, "note_id": record.id}
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/create-note", tags=["notes"])
async def create_note(request: CreateNoteRequest):
    try:
        record = state.current().notes.create_note(request)
        return {
            "success": True,
            "note_id": record.id,
            "note": {"id": record.id, "title": record.title, "type": record.kind.value},
        }
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/rename-note", tags=["notes"])
async def rename(request: RenameNoteRequest):
    try:
        moved = state.current().notes.rename_item(request.old_note_id, request.new_note_id)
        return {
            "success": True,
            "renamed": [{"old_note_id": old, "new_note_id": new} for old, new in moved],
        }
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except FileExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/delete-note", tags=["notes"])
async def delete(request: DeleteNoteRequest):
    try:
        deleted = state.current().notes.delete_item(request.note_id)
        return {"success": True, "deleted": deleted}
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Note not found")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/resolve", response_model=ResolveResponsePayload, tags=["links"])
async def resolve(request: ResolveRequest):
    try:
        span = state.current().links.resolve_span(request.line, request.cursor_offset)
        return ResolveResponsePayload(span=_span_payload(span))
    except Exception as exc:
        log.exception("Span resolution failed")
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/suggest", response_model=SuggestResponsePayload, tags=["links"])
async def suggest(request: SuggestRequest):
    try:
        matches = state.current().links.query(request.text, request.limit)
        return SuggestResponsePayload(results=[EntryPayload.from_scored(m) for m in matches])
    except Exception as exc:
        log.exception("Suggestion query failed")
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/complete", response_model=CompleteResponsePayload, tags=["links"])
async def complete(request: CompleteRequest):
    try:
        span, matches = state.current().links.suggest(
            request.line, request.cursor_offset, request.limit
        )
        return CompleteResponsePayload(
            span=_span_payload(span),
            results=[EntryPayload.from_scored(m) for m in matches],
        )
    except Exception as exc:
        log.exception("Completion failed")
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/link", response_model=LinkResponsePayload, tags=["links"])
async def link(request: LinkRequest):
    # Only kind, title and target shape the link text.
    entry = IndexEntry(
        kind=request.kind,
        source_path="",
        source_title=request.source_title,
        target=request.target,
        display_text=request.target,
    )
    return LinkResponsePayload(link=state.current().links.build_link(entry, request.query))


@app.post("/open-vault", tags=["admin"])
async def open_vault(request: OpenVaultRequest):
    try:
        services = await asyncio.to_thread(state.open_vault, request.path)
        return {"success": True, "root": str(services.root), "index_keys": len(services.links.index)}
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@app.post("/admin/rebuild-index", response_model=RebuildResponsePayload, tags=["admin"])
async def rebuild_index():
    try:
        processed = await asyncio.to_thread(state.current().notes.rebuild_index)
        if processed is None:
            return RebuildResponsePayload(success=True, documents_indexed=0, skipped=True)
        return RebuildResponsePayload(success=True, documents_indexed=processed)
    except Exception as exc:
        log.exception("Index rebuild failed")
        raise HTTPException(status_code=500, detail=str(exc))


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
