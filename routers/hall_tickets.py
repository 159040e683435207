import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ConfigDict, Field

from dependencies import get_store, no_cache
from schemas.common import CamelModel, RequiredStr
from services.history import add_to_history
from services.validators import new_token_id, now_iso, parse_timestamp, sanitize_input, sort_key_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Hall Tickets"])

# --- SCHEMAS ---
class HallTicketCreate(CamelModel):
    # extra fields (exam centre, instructions...) ticket ke saath store hote hain
    model_config = ConfigDict(extra="allow")

    hall_ticket_id: Optional[str] = None
    exam_name: RequiredStr
    student_code: RequiredStr
    student_name: RequiredStr
    student_class: RequiredStr
    student_roll: RequiredStr
    from_date: RequiredStr
    to_date: RequiredStr
    exam_schedule: List[dict] = Field(min_length=1)
    status: Optional[str] = None


class HallTicketIssue(CamelModel):
    hall_ticket_id: RequiredStr
    student_code: RequiredStr
    issued_date: Optional[str] = None


def _ticket_date(ticket, *fields):
    for name in fields:
        if ticket.get(name):
            return sort_key_timestamp(ticket[name])
    return 0.0


@router.post("/api/admin/create-hall-ticket")
def create_hall_ticket(payload: HallTicketCreate, store=Depends(get_store)):
    # client ki date jaisi aayi waisi store hoti hai; yahan sirf check
    from_date = parse_timestamp(payload.from_date)
    to_date = parse_timestamp(payload.to_date)
    if from_date is None or to_date is None:
        raise HTTPException(status_code=400, detail="Invalid exam dates")
    if to_date < from_date:
        raise HTTPException(status_code=400, detail="End date cannot be before start date")

    ticket = payload.model_dump(mode="json", by_alias=True)
    ticket["hallTicketId"] = payload.hall_ticket_id or new_token_id("HT")
    ticket["studentCode"] = payload.student_code.upper()
    ticket["createdAt"] = now_iso()
    ticket["status"] = payload.status or "pending"

    with store.transaction() as doc:
        doc["hallTickets"].append(ticket)
        add_to_history(doc, "hall-ticket-created", "admin", {
            "text": f"Hall Ticket created: {ticket['studentName']} ({ticket['studentCode']}) - {ticket['examName']}",
            "date": ticket["createdAt"],
        })

    logger.info("Hall ticket %s created", ticket["hallTicketId"])
    return {"success": True, "hallTicket": ticket}


@router.get("/api/admin/hall-tickets", dependencies=[Depends(no_cache)])
def get_hall_tickets(store=Depends(get_store)):
    tickets = store.load()["hallTickets"]
    return sorted(tickets, key=lambda t: _ticket_date(t, "createdAt", "issuedDate"), reverse=True)


@router.post("/api/admin/issue-hall-ticket")
def issue_hall_ticket(payload: HallTicketIssue, store=Depends(get_store)):
    student_code = payload.student_code.upper()
    with store.transaction() as doc:
        ticket = next((t for t in doc["hallTickets"] if t.get("hallTicketId") == payload.hall_ticket_id), None)
        if ticket is None:
            raise HTTPException(status_code=404, detail="Hall ticket not found")

        ticket["status"] = "issued"
        ticket["issuedDate"] = payload.issued_date or now_iso()

        issued = doc["studentHallTickets"].setdefault(student_code, [])
        for index, existing in enumerate(issued):
            if existing.get("hallTicketId") == payload.hall_ticket_id:
                issued[index] = ticket
                break
        else:
            issued.append(ticket)

        add_to_history(doc, "hall-ticket-issued", "admin", {
            "text": f"Hall Ticket issued to student: {ticket.get('studentName')} ({student_code}) - {ticket.get('examName')}",
            "date": ticket["issuedDate"],
        })

    logger.info("Hall ticket %s issued to %s", payload.hall_ticket_id, student_code)
    return {"success": True, "message": "Hall ticket issued successfully"}


@router.delete("/api/admin/delete-hall-ticket/{hall_ticket_id}")
def delete_hall_ticket(hall_ticket_id: str, store=Depends(get_store)):
    with store.transaction() as doc:
        tickets = doc["hallTickets"]
        index = next((i for i, t in enumerate(tickets) if t.get("hallTicketId") == hall_ticket_id), None)
        if index is None:
            raise HTTPException(status_code=404, detail="Hall ticket not found")
        deleted = tickets.pop(index)

        code = (deleted.get("studentCode") or "").upper()
        if code in doc["studentHallTickets"]:
            doc["studentHallTickets"][code] = [
                t for t in doc["studentHallTickets"][code] if t.get("hallTicketId") != hall_ticket_id
            ]

        add_to_history(doc, "hall-ticket-deleted", "admin", {
            "text": f"Hall Ticket deleted: {deleted.get('studentName')}",
            "date": now_iso(),
        })
    return {"success": True, "message": "Hall ticket deleted successfully"}


@router.delete("/api/admin/delete-all-hall-tickets")
def delete_all_hall_tickets(store=Depends(get_store)):
    with store.transaction() as doc:
        deleted_count = len(doc["hallTickets"])
        doc["hallTickets"] = []
        doc["studentHallTickets"] = {}
        add_to_history(doc, "all-hall-tickets-deleted", "admin", {
            "text": f"All hall tickets deleted ({deleted_count} tickets)",
            "date": now_iso(),
        })
    logger.info("All %d hall tickets deleted", deleted_count)
    return {"success": True, "message": "All hall tickets deleted successfully", "deletedCount": deleted_count}


@router.get("/api/student-hall-tickets/{student_code}")
def get_student_hall_tickets(student_code: str, store=Depends(get_store)):
    student_code = sanitize_input(student_code)
    if not student_code:
        raise HTTPException(status_code=400, detail="Student code is required")
    tickets = store.load()["studentHallTickets"].get(student_code.upper()) or []
    return sorted(tickets, key=lambda t: _ticket_date(t, "issuedDate", "createdAt"), reverse=True)
