"""
Tests for AskMyNotes FastAPI routes (in-memory SQLite, demo mode).
"""

from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient

from askmynotes.api.main import app

BIO_NOTES = (
    "Glycolysis is the first stage of cellular respiration and occurs in the cytoplasm. "
    "Glycolysis splits one glucose molecule into two pyruvate molecules and yields a small amount of ATP. "
    "The Krebs cycle takes place in the mitochondrial matrix and releases carbon dioxide. "
    "Oxidative phosphorylation uses the electron transport chain to produce most of the cell's ATP."
)


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as test_client:
        yield test_client


def _headers(user_id: str = "") -> dict:
    return {"X-User-Id": user_id or uuid.uuid4().hex}


def _create_subject(client, headers, name: str = "Biology") -> str:
    r = client.post("/api/subjects", json={"name": name}, headers=headers)
    assert r.status_code == 201
    return r.json()["id"]


def _subject_with_notes(client, headers) -> str:
    subject_id = _create_subject(client, headers)
    r = client.post(
        f"/api/subjects/{subject_id}/notes",
        json={"fileName": "bio.txt", "text": BIO_NOTES},
        headers=headers,
    )
    assert r.status_code == 201
    return subject_id


def test_health(client):
    """GET /api/health reports demo mode when no key is configured."""
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "demoMode": True}


def test_requests_without_user_are_rejected(client):
    """Subject routes need the X-User-Id header."""
    r = client.get("/api/subjects")
    assert r.status_code == 401
    assert r.json()["detail"] == "Unauthorized"


def test_subject_limit_is_three(client):
    """A user can hold at most three subjects, in slots 1-3."""
    headers = _headers()
    for name in ("Biology", "Chemistry", "Physics"):
        _create_subject(client, headers, name)

    r = client.post("/api/subjects", json={"name": "History"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "You can create at most 3 subjects."

    subjects = client.get("/api/subjects", headers=headers).json()["subjects"]
    assert [s["slot"] for s in subjects] == [1, 2, 3]
    assert all(s["fileCount"] == 0 for s in subjects)


def test_subject_name_is_validated(client):
    r = client.post("/api/subjects", json={"name": "x"}, headers=_headers())
    assert r.status_code == 422


def test_unknown_subject_returns_404(client):
    r = client.get("/api/subjects/does-not-exist/notes", headers=_headers())
    assert r.status_code == 404


def test_subjects_are_private_to_their_user(client):
    subject_id = _create_subject(client, _headers("owner"))

    r = client.get(f"/api/subjects/{subject_id}/notes", headers=_headers("intruder"))
    assert r.status_code == 404


def test_upload_notes(client):
    """POST notes chunks and embeds the text into the subject."""
    headers = _headers()
    subject_id = _create_subject(client, headers)

    r = client.post(
        f"/api/subjects/{subject_id}/notes",
        json={"fileName": "bio.txt", "text": BIO_NOTES},
        headers=headers,
    )
    assert r.status_code == 201
    data = r.json()
    assert data["parseStatus"] == "parsed"
    assert data["sectionsCount"] == 1
    assert data["chunksCount"] >= 1

    files = client.get(f"/api/subjects/{subject_id}/notes", headers=headers).json()["files"]
    assert [f["fileName"] for f in files] == ["bio.txt"]
    subjects = client.get("/api/subjects", headers=headers).json()["subjects"]
    assert subjects[0]["fileCount"] == 1


def test_upload_rejects_unsupported_file_type(client):
    headers = _headers()
    subject_id = _create_subject(client, headers)

    r = client.post(
        f"/api/subjects/{subject_id}/notes",
        json={"fileName": "slides.pdf", "text": "binary"},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Unsupported file type. Upload TXT or Markdown files only."


def test_upload_blank_text_marks_file_failed(client):
    headers = _headers()
    subject_id = _create_subject(client, headers)

    r = client.post(
        f"/api/subjects/{subject_id}/notes",
        json={"fileName": "empty.txt", "text": "   "},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "No text content found in this file."
    files = client.get(f"/api/subjects/{subject_id}/notes", headers=headers).json()["files"]
    assert files[0]["parseStatus"] == "error"


def test_features_need_notes_first(client):
    headers = _headers()
    subject_id = _create_subject(client, headers)

    r = client.post(f"/api/subjects/{subject_id}/chat", json={"question": "What is glycolysis?"}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Upload notes first to chat with this subject."

    r = client.get(f"/api/subjects/{subject_id}/study", headers=headers)
    assert r.status_code == 400


def test_chat_answers_with_citations(client):
    headers = _headers()
    subject_id = _subject_with_notes(client, headers)

    r = client.post(f"/api/subjects/{subject_id}/chat", json={"question": "What is glycolysis?"}, headers=headers)
    assert r.status_code == 200
    data = r.json()
    assert data["answer"] != "Not found in your notes for Biology"
    assert data["confidence"] in ("High", "Medium", "Low")
    assert data["citations"][0]["fileName"] == "bio.txt"
    assert "chunkId" in data["citations"][0]
    assert data["evidence"][0]["textSnippet"]


def test_chat_refuses_outside_notes(client):
    headers = _headers()
    subject_id = _subject_with_notes(client, headers)

    r = client.post(
        f"/api/subjects/{subject_id}/chat",
        json={
            "question": "What is photosynthesis?",
            "history": [{"role": "user", "text": "Tell me about plants"}],
        },
        headers=headers,
    )
    assert r.status_code == 200
    data = r.json()
    assert data["answer"] == "Not found in your notes for Biology"
    assert data["citations"] == []


def test_study_pack_and_grading(client):
    headers = _headers()
    subject_id = _subject_with_notes(client, headers)

    r = client.get(f"/api/subjects/{subject_id}/study?difficulty=hard&variation=v1", headers=headers)
    assert r.status_code == 200
    pack = r.json()
    assert pack["difficulty"] == "Hard"
    assert len(pack["mcqs"]) == 5
    assert len(pack["shortAnswers"]) == 3
    assert len(pack["flashcards"]) == 10

    answers = [mcq["correctOption"] for mcq in pack["mcqs"]]
    shorts = [item["modelAnswer"] for item in pack["shortAnswers"]]
    r = client.post(
        f"/api/subjects/{subject_id}/study/grade",
        json={"studyPack": pack, "mcqAnswers": answers, "shortAnswers": shorts},
        headers=headers,
    )
    assert r.status_code == 200
    result = r.json()
    assert result["totalMarks"] == 20
    assert result["percentage"] == 100
    assert result["mcq"]["correct"] == 5


def test_study_rejects_unknown_difficulty(client):
    headers = _headers()
    subject_id = _subject_with_notes(client, headers)

    r = client.get(f"/api/subjects/{subject_id}/study?difficulty=extreme", headers=headers)
    assert r.status_code == 400


def test_grade_rejects_out_of_range_option(client):
    headers = _headers()
    subject_id = _subject_with_notes(client, headers)
    pack = client.get(f"/api/subjects/{subject_id}/study", headers=headers).json()

    r = client.post(
        f"/api/subjects/{subject_id}/study/grade",
        json={"studyPack": pack, "mcqAnswers": [9]},
        headers=headers,
    )
    assert r.status_code == 422


def test_ai_lab_and_coach(client):
    headers = _headers()
    subject_id = _subject_with_notes(client, headers)

    r = client.get(f"/api/subjects/{subject_id}/ai-lab", headers=headers)
    assert r.status_code == 200
    lab = r.json()
    assert len(lab["keyConcepts"]) == 6
    assert len(lab["flashcards"]) == 8
    assert len(lab["revisionPlan"]) == 3

    r = client.post(
        f"/api/subjects/{subject_id}/ai-lab/coach",
        json={"question": "What is glycolysis?", "answer": "Glycolysis splits glucose into pyruvate."},
        headers=headers,
    )
    assert r.status_code == 200
    coach = r.json()
    assert 0 < coach["score"] <= 100
    assert coach["verdict"] in ("Excellent", "Good", "Needs Work")
    assert coach["improvedAnswer"]


def test_boost_tools(client):
    headers = _headers()
    subject_id = _subject_with_notes(client, headers)
    base = f"/api/subjects/{subject_id}/boost"

    search = client.post(f"{base}/search", json={"query": "glycolysis", "limit": 5}, headers=headers)
    assert search.status_code == 200
    assert search.json()["totalHits"] >= 1

    explain = client.post(f"{base}/explain", json={"concept": "glycolysis"}, headers=headers)
    assert explain.status_code == 200
    assert explain.json()["oneLiner"] != "Not found in your notes for Biology"

    planner = client.post(f"{base}/planner", json={"goalMinutes": 45, "focus": "glycolysis"}, headers=headers)
    assert planner.status_code == 200
    assert len(planner.json()["plan"]) >= 3

    too_short = client.post(f"{base}/planner", json={"goalMinutes": 5}, headers=headers)
    assert too_short.status_code == 422


def test_review_deck_workflow(client):
    headers = _headers()
    subject_id = _subject_with_notes(client, headers)
    base = f"/api/subjects/{subject_id}/review"

    empty = client.get(base, headers=headers).json()
    assert empty["stats"]["totalCards"] == 0

    seeded = client.post(base, json={}, headers=headers)
    assert seeded.status_code == 200
    data = seeded.json()
    assert data["createdCards"] >= 1
    assert data["stats"]["dueCount"] == data["createdCards"]
    card = data["dueCards"][0]
    assert card["dueAt"].endswith("Z")

    again = client.post(base, json={}, headers=headers).json()
    assert again["createdCards"] == 0

    rated = client.post(f"{base}/{card['id']}", json={"rating": "good"}, headers=headers)
    assert rated.status_code == 200
    updated = rated.json()["card"]
    assert updated["repetitions"] == 1
    assert updated["intervalDays"] == 1
    assert updated["lastRating"] == "good"

    queue = client.get(base, headers=headers).json()
    assert queue["stats"]["reviewedToday"] == 1
    assert card["id"] not in [c["id"] for c in queue["dueCards"]]


def test_review_errors(client):
    headers = _headers()
    subject_id = _create_subject(client, headers)
    base = f"/api/subjects/{subject_id}/review"

    r = client.post(base, json={}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Upload notes first to create a review deck."

    r = client.post(f"{base}/missing-card", json={"rating": "good"}, headers=headers)
    assert r.status_code == 404

    r = client.post(f"{base}/missing-card", json={"rating": "perfect"}, headers=headers)
    assert r.status_code == 422


def test_delete_subject_removes_everything(client):
    headers = _headers()
    subject_id = _subject_with_notes(client, headers)
    client.post(f"/api/subjects/{subject_id}/review", json={}, headers=headers)

    r = client.delete(f"/api/subjects/{subject_id}", headers=headers)
    assert r.status_code == 204

    r = client.get(f"/api/subjects/{subject_id}/notes", headers=headers)
    assert r.status_code == 404
    assert client.get("/api/subjects", headers=headers).json()["subjects"] == []
