# backend/app.py
import html
import json
import logging

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from sqlalchemy.orm import Session

from autofill import SCHEDULE_BUILDERS, autofill_document, detect_template_type
from config import DEFAULT_BLANK_LENGTH, setup_logging
from db import Base, SessionLocal, engine
from docx_parser import DocumentParseError, parse_word_document, sanitize_file_name, validate_document_file
from models import Document as DocModel
from placeholder_engine import (
    BlankSpaceNavigator, clear, detect, extract_plain_text, fill, insert_blank_space,
    list_blank_spaces, partition, preview_markup,
)
from placeholder_hints import (
    IncompleteDocumentError, apply_placeholders, detect_placeholders, fill_from_record,
    fill_placeholder, require_complete, validate_filled,
)
from render_service import DocumentGenerationError, build_docx, docx_to_html, generate_document
from variable_engine import find_variables, substitute

setup_logging()
logger = logging.getLogger(__name__)
Base.metadata.create_all(bind=engine)

app = FastAPI(title="Lease Document Template Engine API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"], allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)

MEDIA_TYPES = {
    "docx": ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", "docx"),
    "text": ("text/plain; charset=utf-8", "txt"),
    "html": ("text/html; charset=utf-8", "html"),
}

def db_sess():
    db = SessionLocal()
    try: yield db
    finally: db.close()

# ---------- helpers ----------
def get_document(db: Session, document_id: str) -> DocModel:
    doc = db.query(DocModel).filter(DocModel.id == document_id).first()
    if not doc: raise HTTPException(404, "Document not found")
    return doc

def parse_json_object(raw: str, what: str) -> dict:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(400, f"{what} is not valid JSON")
    if not isinstance(data, dict):
        raise HTTPException(400, f"{what} must be a JSON object")
    return data

def save_content(db: Session, doc: DocModel, content: str):
    doc.content = content
    unfilled, filled = partition(list_blank_spaces(content))
    if filled and not unfilled:
        doc.status = "completed"
    elif filled:
        doc.status = "in_progress"
    db.commit()

def spaces_payload(content: str) -> dict:
    spaces = list_blank_spaces(content)
    unfilled, filled = partition(spaces)
    return {"blank_spaces": [s.model_dump() for s in spaces],
            "unfilled": len(unfilled), "filled": len(filled)}

async def render_output(text: str, output_format: str, name: str) -> Response:
    if output_format not in MEDIA_TYPES:
        raise HTTPException(400, f"Unsupported format: {output_format}")
    try:
        payload = await run_in_threadpool(generate_document, text, None, output_format)
    except DocumentGenerationError:
        raise HTTPException(500, "Failed to generate document")
    media_type, ext = MEDIA_TYPES[output_format]
    return Response(content=payload, media_type=media_type,
                    headers={"Content-Disposition": f'attachment; filename="{name}.{ext}"'})

# ---------- documents ----------
@app.post("/api/upload")
async def upload_doc(file: UploadFile = File(...), db: Session = Depends(db_sess)):
    if not file.filename.lower().endswith(".docx"):
        raise HTTPException(status_code=400, detail="Only .docx supported")
    data = await file.read()
    if not validate_document_file(file.filename, len(data)):
        raise HTTPException(status_code=400, detail="File is empty or larger than the upload limit")
    try:
        content = await run_in_threadpool(parse_word_document, data)
    except DocumentParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

    doc = DocModel(name=sanitize_file_name(file.filename), original_filename=file.filename,
                   document_type=detect_template_type(extract_plain_text(content)), content=content)
    db.add(doc); db.commit()
    logger.info("Uploaded %s as document %s", file.filename, doc.id)
    return {"document_id": doc.id, "document_type": doc.document_type, **spaces_payload(content)}

@app.post("/api/documents")
def create_document(name: str = Form(...), content: str = Form(...),
                    document_type: str | None = Form(None), db: Session = Depends(db_sess)):
    doc = DocModel(name=sanitize_file_name(name), content=content,
                   document_type=document_type or detect_template_type(extract_plain_text(content)))
    db.add(doc); db.commit()
    return {"document_id": doc.id, "document_type": doc.document_type, **spaces_payload(content)}

@app.get("/api/render")
def render(document_id: str, db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    return {"html": preview_markup(doc.content), "status": doc.status}

# ---------- blank spaces ----------
@app.get("/api/blank-spaces")
def blank_spaces(document_id: str, db: Session = Depends(db_sess)):
    return spaces_payload(get_document(db, document_id).content)

@app.post("/api/detect")
def detect_blank_spaces(document_id: str = Form(...), db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    content, _ = detect(doc.content)
    save_content(db, doc, content)
    return spaces_payload(content)

@app.post("/api/fill")
def fill_blank(document_id: str = Form(...), blank_id: str = Form(...), value: str = Form(...),
               db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    content = fill(doc.content, blank_id, value)
    changed = content != doc.content
    if changed: save_content(db, doc, content)
    return {"ok": True, "changed": changed}

@app.post("/api/clear")
def clear_blank(document_id: str = Form(...), blank_id: str = Form(...), db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    content = clear(doc.content, blank_id)
    changed = content != doc.content
    if changed: save_content(db, doc, content)
    return {"ok": True, "changed": changed}

@app.post("/api/insert")
def insert_blank(document_id: str = Form(...), position: int = Form(...),
                 length: int = Form(DEFAULT_BLANK_LENGTH), db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    content, space = insert_blank_space(doc.content, position, length)
    save_content(db, doc, content)
    return {"blank_space": space.model_dump()}

@app.post("/api/navigate")
def navigate(document_id: str = Form(...), index: int = Form(0), direction: str = Form("next"),
             db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    spaces = list_blank_spaces(doc.content)
    navigator = BlankSpaceNavigator(index)
    moves = {"next": navigator.next, "previous": navigator.previous, "current": navigator.current}
    if direction not in moves:
        raise HTTPException(400, "direction must be next, previous or current")
    target = moves[direction](spaces)
    return {"index": navigator.index, "blank_space": target.model_dump() if target else None}

@app.post("/api/autofill")
def autofill(document_id: str = Form(...), record_json: str = Form(...),
             document_type: str | None = Form(None), db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    record = parse_json_object(record_json, "record_json")
    doc_type = document_type or doc.document_type
    if doc_type not in SCHEDULE_BUILDERS:
        raise HTTPException(400, f"No field schedule for document type: {doc_type}")
    result = autofill_document(doc.content, record, doc_type)
    doc.document_type = doc_type
    save_content(db, doc, result.markup)
    return {"ok": True, "filled_ids": result.filled_ids, "unfilled_ids": result.unfilled_ids}

# ---------- {{variables}} ----------
@app.get("/api/variables")
def list_variables(document_id: str, db: Session = Depends(db_sess)):
    return {"variables": find_variables(get_document(db, document_id).content)}

@app.post("/api/variables")
def apply_variables(document_id: str = Form(...), variables_json: str = Form(...),
                    db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    values = parse_json_object(variables_json, "variables_json")
    escaped = {k: html.escape(str(v), quote=False) if v is not None else None for k, v in values.items()}
    save_content(db, doc, substitute(doc.content, escaped))
    return {"ok": True, "variables": find_variables(doc.content)}

# ---------- detected placeholders ----------
@app.get("/api/placeholders")
def placeholders(document_id: str, template_type: str | None = None, db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    found = detect_placeholders(extract_plain_text(doc.content), template_type or doc.document_type)
    check = validate_filled(found)
    return {"placeholders": [p.model_dump() for p in found],
            "completion": check.completion, "is_valid": check.is_valid}

@app.post("/api/generate-from-placeholders")
async def generate_from_placeholders(document_id: str = Form(...), values_json: str = Form("{}"),
                                     record_json: str | None = Form(None),
                                     template_type: str | None = Form(None), format: str = Form("docx"),
                                     db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    text = extract_plain_text(doc.content)
    doc_type = template_type or doc.document_type
    found = detect_placeholders(text, doc_type)
    if record_json:
        if doc_type not in SCHEDULE_BUILDERS:
            raise HTTPException(400, f"No field schedule for document type: {doc_type}")
        found = fill_from_record(found, parse_json_object(record_json, "record_json"), doc_type)
    for placeholder_id, value in parse_json_object(values_json, "values_json").items():
        found = fill_placeholder(found, placeholder_id, str(value))
    try:
        require_complete(found)
    except IncompleteDocumentError as e:
        raise HTTPException(409, str(e))
    return await render_output(apply_placeholders(text, found), format, doc.name)

# ---------- output ----------
@app.get("/api/download")
async def download(document_id: str, format: str = "docx", db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    return await render_output(extract_plain_text(doc.content), format, doc.name)

@app.get("/api/preview")
async def preview(document_id: str, db: Session = Depends(db_sess)):
    doc = get_document(db, document_id)
    try:
        data = await run_in_threadpool(build_docx, extract_plain_text(doc.content))
    except DocumentGenerationError:
        raise HTTPException(500, "Failed to generate document")
    return {"html": docx_to_html(data)}
