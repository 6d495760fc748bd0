from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Callable, Mapping, Optional

from ..attendance.qr import parse_qr_payload
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_utc, to_iso
from ..common.validators import (
    require_hhmm,
    require_int_range,
    require_iso_date,
    require_non_empty,
    require_non_negative_number,
)
from ..core import messages
from ..core.constants import MAX_RATING, MIN_RATING
from ..core.enums import PaymentMethod, PaymentStatus, ResultCode
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CapacityError,
    ConflictError,
    NotFoundError,
    StoreError,
    TableMissingError,
    ValidationError,
)
from ..core.result import OperationResult
from ..events.model import EVENT_COLUMNS, Event, EventDraft
from ..events.repository import EventRepository
from ..food_stalls.model import STALL_COLUMNS, FoodStall, FoodStallDraft, MenuItem, ReviewDraft
from ..food_stalls.repository import FoodStallRepository
from ..registrations.payment import PaymentGateway
from ..registrations.repository import RegistrationRepository
from ..users.model import CurrentUser
from ..users.repository import ProfileRepository
from ..users.session import Session

logger = logging.getLogger(__name__)

TOPIC_EVENTS = "events"
TOPIC_FOOD_STALLS = "food_stalls"
TOPIC_USER_DATA = "user_data"

CacheListener = Callable[[str], None]


def _clean_menu(menu) -> tuple[MenuItem, ...]:
    items = []
    if menu is not None and not isinstance(menu, (list, tuple)):
        raise ValidationError("Menu must be a list")
    for raw in menu or ():
        if isinstance(raw, MenuItem):
            name, price = raw.item, raw.price
        elif isinstance(raw, Mapping):
            name, price = raw.get("item"), raw.get("price")
        else:
            raise ValidationError("Menu entries must have an item and a price")
        items.append(
            MenuItem(
                item=require_non_empty(name, "Menu item"),
                price=require_non_negative_number(price or 0, "Menu price"),
            )
        )
    return tuple(items)


def _clean_event_field(name: str, value: Any) -> Any:
    if name == "title":
        return require_non_empty(value, "Title")
    if name == "description":
        return str(value or "").strip()
    if name == "date":
        return require_iso_date(value)
    if name == "time":
        return require_hhmm(value)
    if name == "location":
        return require_non_empty(value, "Location")
    if name == "department":
        return require_non_empty(value, "Department")
    if name == "max_seats":
        return require_int_range(value, "Max seats", 1)
    if name == "price":
        return require_non_negative_number(value, "Price")
    if name == "image_url":
        return value or None
    raise ValidationError(f"Unknown event field: {name}")


def _clean_stall_field(name: str, value: Any) -> Any:
    if name == "name":
        return require_non_empty(value, "Name")
    if name == "description":
        return require_non_empty(value, "Description")
    if name == "menu":
        return _clean_menu(value)
    if name == "is_active":
        return bool(value)
    if name in ("location", "image_url"):
        return value or None
    if name == "contact_info":
        if not value:
            return None
        if not isinstance(value, Mapping):
            raise ValidationError("Contact info must be an object")
        return dict(value)
    raise ValidationError(f"Unknown food stall field: {name}")


class DataService:
    """Cached view of events, food stalls and the signed-in user's data.

    Every mutation goes to the repositories first, then reloads the parts of
    the cache it touched, then notifies subscribers. Mutations return an
    ``OperationResult``; store failures never escape.

    One instance serves one ``Session``; its re-entrant lock serialises
    operations so a check and the write that follows it see the same cache.
    """

    def __init__(
        self,
        session: Session,
        *,
        events: EventRepository,
        registrations: RegistrationRepository,
        attendance: AttendanceRepository,
        food_stalls: FoodStallRepository,
        profiles: ProfileRepository,
        payments: PaymentGateway,
        require_registration_for_attendance: bool = False,
        clock: Callable[[], Any] = now_utc,
        autoload: bool = True,
    ):
        self._session = session
        self._events_repo = events
        self._registrations = registrations
        self._attendance = attendance
        self._food_stalls_repo = food_stalls
        self._profiles = profiles
        self._payments = payments
        self._require_registration = require_registration_for_attendance
        self._clock = clock

        self._lock = threading.RLock()
        self._events: list[Event] = []
        self._food_stalls: list[FoodStall] = []
        self._registered_event_ids: set[str] = set()
        self._attended_event_ids: list[str] = []
        self._loading = False
        self._listeners: list[CacheListener] = []

        self._unsubscribe_session = session.subscribe(self._on_session_change)
        if autoload:
            self.refresh_data()

    # ------------------------------------------------------------------
    # cache accessors

    @property
    def session(self) -> Session:
        return self._session

    @property
    def events(self) -> tuple[Event, ...]:
        with self._lock:
            return tuple(self._events)

    @property
    def food_stalls(self) -> tuple[FoodStall, ...]:
        with self._lock:
            return tuple(self._food_stalls)

    @property
    def is_loading(self) -> bool:
        return self._loading

    def get_event(self, event_id: str) -> Optional[Event]:
        with self._lock:
            return next((e for e in self._events if e.id == event_id), None)

    def get_user_registered_events(self) -> list[Event]:
        """Cached events the session user holds a completed registration for."""

        with self._lock:
            return [e for e in self._events if e.id in self._registered_event_ids]

    def get_user_attendance(self) -> list[str]:
        """Event ids the session user has been marked present at."""

        with self._lock:
            return list(self._attended_event_ids)

    # ------------------------------------------------------------------
    # observers

    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, topic: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(topic)
            except Exception:
                logger.exception("Cache listener failed on %s", topic)

    def close(self) -> None:
        """Detach from the session and drop subscribers."""

        self._unsubscribe_session()
        with self._lock:
            self._listeners.clear()

    # ------------------------------------------------------------------
    # loading

    def _reload_events(self) -> bool:
        try:
            events = list(self._events_repo.list_with_counts())
        except TableMissingError as exc:
            logger.warning("Events table unavailable, keeping cached events: %s", exc)
            return False
        except StoreError:
            logger.exception("Error loading events")
            return False
        self._events = events
        self._notify(TOPIC_EVENTS)
        return True

    def _reload_food_stalls(self) -> bool:
        try:
            stalls = list(self._food_stalls_repo.list_with_reviews(active_only=True))
        except TableMissingError as exc:
            logger.warning("Food stalls table unavailable, keeping cached stalls: %s", exc)
            return False
        except StoreError:
            logger.exception("Error loading food stalls")
            return False
        self._food_stalls = stalls
        self._notify(TOPIC_FOOD_STALLS)
        return True

    def _reload_user_data(self) -> bool:
        user = self._session.current_user
        if user is None:
            self._registered_event_ids = set()
            self._attended_event_ids = []
            self._notify(TOPIC_USER_DATA)
            return True
        try:
            registrations = self._registrations.list_for_user(user.id, status=PaymentStatus.COMPLETED)
            records = self._attendance.list_for_user(user.id)
        except StoreError:
            logger.exception("Error loading user data for %s", user.id)
            return False
        self._registered_event_ids = {r.event_id for r in registrations}
        self._attended_event_ids = [r.event_id for r in records]
        self._notify(TOPIC_USER_DATA)
        return True

    def refresh_data(self) -> OperationResult:
        """Reload everything; failed reads keep the previous cache."""

        with self._lock:
            self._loading = True
            try:
                ok = all([self._reload_events(), self._reload_food_stalls(), self._reload_user_data()])
            finally:
                self._loading = False
        if not ok:
            return OperationResult.failure(ResultCode.UNAVAILABLE, messages.GENERIC_FAILURE)
        return OperationResult.success(messages.DATA_REFRESHED)

    def _on_session_change(self, user: Optional[CurrentUser]) -> None:
        with self._lock:
            self._registered_event_ids = set()
            self._attended_event_ids = []
            logger.info("Session changed (user=%s), reloading", user.id if user else None)
            self.refresh_data()

    # ------------------------------------------------------------------
    # guards

    def _run(self, operation: str, action: Callable[[], OperationResult]) -> OperationResult:
        with self._lock:
            try:
                return action()
            except ValidationError as exc:
                return OperationResult.failure(ResultCode.INVALID, str(exc))
            except (AuthenticationError, AuthorizationError) as exc:
                return OperationResult.failure(ResultCode.FORBIDDEN, str(exc))
            except NotFoundError as exc:
                return OperationResult.failure(ResultCode.NOT_FOUND, str(exc))
            except ConflictError as exc:
                return OperationResult.failure(ResultCode.CONFLICT, str(exc))
            except StoreError:
                logger.exception("%s failed", operation)
                return OperationResult.failure(ResultCode.UNAVAILABLE, messages.GENERIC_FAILURE)

    def _require_user(self) -> CurrentUser:
        user = self._session.current_user
        if user is None:
            raise AuthenticationError(messages.LOGIN_REQUIRED)
        return user

    def _require_admin(self) -> CurrentUser:
        user = self._require_user()
        if not user.is_admin:
            raise AuthorizationError(messages.FORBIDDEN)
        return user

    def _require_acting_for(self, user_id: str) -> CurrentUser:
        user = self._require_user()
        if not user.is_admin and user.id != user_id:
            raise AuthorizationError(messages.FORBIDDEN)
        return user

    # ------------------------------------------------------------------
    # registrations

    def _check_can_register(self, event_id: str, user_id: str) -> Event:
        if self._registrations.find(event_id, user_id, status=PaymentStatus.COMPLETED):
            raise ConflictError(messages.ALREADY_REGISTERED)
        event = self._events_repo.get_by_id(event_id)
        if not event:
            raise NotFoundError(messages.EVENT_NOT_FOUND)
        if self._registrations.count_completed(event_id) >= event.max_seats:
            raise CapacityError(messages.EVENT_FULL)
        return event

    def _after_registration_change(self) -> None:
        self._reload_events()
        self._reload_user_data()

    def register_for_event(self, event_id: str, user_id: str) -> OperationResult:
        def action() -> OperationResult:
            self._require_acting_for(user_id)
            self._check_can_register(event_id, user_id)
            return self._register_completed(event_id, user_id)

        return self._run("register_for_event", action)

    def _register_completed(self, event_id: str, user_id: str, payment_id: Optional[str] = None) -> OperationResult:
        try:
            registration_id = self._registrations.create(
                event_id=event_id,
                user_id=user_id,
                payment_status=PaymentStatus.COMPLETED,
                payment_id=payment_id,
            )
        except CapacityError:
            raise CapacityError(messages.EVENT_FULL)
        except ConflictError:
            raise ConflictError(messages.ALREADY_REGISTERED)
        self._after_registration_change()
        logger.info("User %s registered for event %s", user_id, event_id)
        return OperationResult.success(messages.REGISTERED, data=registration_id)

    def purchase_registration(
        self,
        event_id: str,
        user_id: str,
        method: PaymentMethod = PaymentMethod.UPI,
    ) -> OperationResult:
        """Register through the payment gateway (free events skip payment)."""

        def action() -> OperationResult:
            self._require_acting_for(user_id)
            event = self._check_can_register(event_id, user_id)
            if event.price <= 0:
                return self._register_completed(event_id, user_id)

            registration_id = self._registrations.create(
                event_id=event_id,
                user_id=user_id,
                payment_status=PaymentStatus.PENDING,
            )
            receipt = self._payments.charge(event.price, method, registration_id)
            if not receipt.ok:
                self._registrations.update_status(registration_id, payment_status=PaymentStatus.FAILED)
                self._reload_user_data()
                logger.info("Payment failed for user %s on event %s", user_id, event_id)
                return OperationResult.failure(ResultCode.PAYMENT_FAILED, messages.PAYMENT_FAILED)

            try:
                self._registrations.update_status(
                    registration_id,
                    payment_status=PaymentStatus.COMPLETED,
                    payment_id=receipt.transaction_id,
                )
            except ConflictError as exc:
                # Seat or registration taken while the charge was in flight.
                self._registrations.update_status(registration_id, payment_status=PaymentStatus.REFUNDED)
                self._after_registration_change()
                logger.warning("Refunded %s for user %s on event %s", receipt.transaction_id, user_id, event_id)
                if isinstance(exc, CapacityError):
                    raise ConflictError(messages.EVENT_FULL)
                raise ConflictError(messages.ALREADY_REGISTERED)

            self._after_registration_change()
            logger.info("User %s paid %s for event %s", user_id, receipt.transaction_id, event_id)
            return OperationResult.success(
                messages.REGISTERED,
                data={"registrationId": registration_id, "transactionId": receipt.transaction_id},
            )

        return self._run("purchase_registration", action)

    def unregister_from_event(self, event_id: str, user_id: str) -> OperationResult:
        def action() -> OperationResult:
            self._require_acting_for(user_id)
            if not self._registrations.find(event_id, user_id, status=PaymentStatus.COMPLETED):
                raise NotFoundError(messages.NOT_REGISTERED)
            self._registrations.delete_for_event_and_user(event_id, user_id)
            self._after_registration_change()
            logger.info("User %s unregistered from event %s", user_id, event_id)
            return OperationResult.success(messages.UNREGISTERED)

        return self._run("unregister_from_event", action)

    # ------------------------------------------------------------------
    # attendance

    def mark_attendance(
        self,
        event_id: str,
        user_id: str,
        scan_payload: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        def action() -> OperationResult:
            admin = self._require_admin()
            if not self._events_repo.get_by_id(event_id):
                raise NotFoundError(messages.EVENT_NOT_FOUND)
            if not self._profiles.get_by_id(user_id):
                raise NotFoundError(messages.USER_NOT_FOUND)
            if self._attendance.find(event_id, user_id):
                raise ConflictError(messages.DUPLICATE_SCAN)
            if self._require_registration and not self._registrations.find(
                event_id, user_id, status=PaymentStatus.COMPLETED
            ):
                raise NotFoundError(messages.STUDENT_NOT_REGISTERED)

            try:
                record_id = self._attendance.create(
                    event_id=event_id,
                    user_id=user_id,
                    marked_by=admin.id,
                    qr_data=dict(scan_payload) if scan_payload else None,
                )
            except ConflictError:
                raise ConflictError(messages.DUPLICATE_SCAN)
            self._reload_user_data()
            logger.info("Attendance marked for user %s at event %s by %s", user_id, event_id, admin.id)
            return OperationResult.success(messages.ATTENDANCE_MARKED, data=record_id)

        return self._run("mark_attendance", action)

    def scan_attendance(self, event_id: str, raw_qr: str) -> OperationResult:
        """Mark attendance from the text of a student's QR code."""

        def action() -> OperationResult:
            admin = self._require_admin()
            try:
                payload = parse_qr_payload(raw_qr)
            except ValidationError:
                return OperationResult.failure(ResultCode.INVALID, messages.INVALID_QR)
            if payload.event_id and payload.event_id != event_id:
                return OperationResult.failure(ResultCode.INVALID, messages.WRONG_EVENT_QR)

            profile = self._profiles.get_by_id(payload.user_id) if payload.user_id else None
            if profile is None and payload.roll_number:
                profile = self._profiles.get_by_roll_number(payload.roll_number)
            if profile is None:
                raise NotFoundError(messages.USER_NOT_FOUND)

            audit = {
                "scannedBy": admin.id,
                "scannedAt": to_iso(self._clock()),
                "qrData": payload.to_dict(),
            }
            result = self.mark_attendance(event_id, profile.id, audit)
            if not result:
                return result
            return OperationResult.success(
                result.message,
                data={
                    "recordId": result.data,
                    "user": {"id": profile.id, "name": profile.name, "rollNumber": profile.roll_number},
                },
            )

        return self._run("scan_attendance", action)

    # ------------------------------------------------------------------
    # events (admin)

    def add_event(self, draft: EventDraft) -> OperationResult:
        def action() -> OperationResult:
            admin = self._require_admin()
            clean = EventDraft(**{name: _clean_event_field(name, getattr(draft, name)) for name in EVENT_COLUMNS})
            try:
                event_id = self._events_repo.create(clean, created_by=admin.id)
            except TableMissingError as exc:
                event_id = str(uuid.uuid4())
                self._events.append(Event.from_draft(event_id, clean, created_by=admin.id))
                self._events.sort(key=lambda e: (e.date, e.time))
                logger.warning("Events table missing, kept event %s locally: %s", event_id, exc)
                self._notify(TOPIC_EVENTS)
                return OperationResult.success(messages.EVENT_CREATED_OFFLINE, data=event_id)
            self._reload_events()
            logger.info("Event %s created by %s", event_id, admin.id)
            return OperationResult.success(messages.EVENT_CREATED, data=event_id)

        return self._run("add_event", action)

    def update_event(self, event_id: str, changes: Mapping[str, Any]) -> OperationResult:
        def action() -> OperationResult:
            self._require_admin()
            clean = {name: _clean_event_field(name, value) for name, value in changes.items()}
            current = self._events_repo.get_by_id(event_id)
            if not current:
                raise NotFoundError(messages.EVENT_NOT_FOUND)
            if "max_seats" in clean and clean["max_seats"] < current.registered_count:
                raise ValidationError(messages.SEATS_BELOW_REGISTRATIONS)
            if not self._events_repo.update(event_id, clean):
                raise NotFoundError(messages.EVENT_NOT_FOUND)
            self._reload_events()
            logger.info("Event %s updated (%s)", event_id, ", ".join(sorted(clean)))
            return OperationResult.success(messages.EVENT_UPDATED)

        return self._run("update_event", action)

    def delete_event(self, event_id: str) -> OperationResult:
        def action() -> OperationResult:
            self._require_admin()
            if not self._events_repo.delete(event_id):
                raise NotFoundError(messages.EVENT_NOT_FOUND)
            self._after_registration_change()
            logger.info("Event %s deleted", event_id)
            return OperationResult.success(messages.EVENT_DELETED)

        return self._run("delete_event", action)

    # ------------------------------------------------------------------
    # food stalls

    def add_food_stall(self, draft: FoodStallDraft) -> OperationResult:
        def action() -> OperationResult:
            self._require_admin()
            clean = FoodStallDraft(
                **{name: _clean_stall_field(name, getattr(draft, name)) for name in STALL_COLUMNS}
            )
            try:
                stall_id = self._food_stalls_repo.create(clean)
            except TableMissingError as exc:
                stall_id = str(uuid.uuid4())
                if clean.is_active:
                    self._food_stalls.append(FoodStall.from_draft(stall_id, clean))
                logger.warning("Food stalls table missing, kept stall %s locally: %s", stall_id, exc)
                self._notify(TOPIC_FOOD_STALLS)
                return OperationResult.success(messages.STALL_CREATED_OFFLINE, data=stall_id)
            self._reload_food_stalls()
            logger.info("Food stall %s created", stall_id)
            return OperationResult.success(messages.STALL_CREATED, data=stall_id)

        return self._run("add_food_stall", action)

    def update_food_stall(self, stall_id: str, changes: Mapping[str, Any]) -> OperationResult:
        def action() -> OperationResult:
            self._require_admin()
            clean = {name: _clean_stall_field(name, value) for name, value in changes.items()}
            if not self._food_stalls_repo.update(stall_id, clean):
                raise NotFoundError(messages.STALL_NOT_FOUND)
            self._reload_food_stalls()
            logger.info("Food stall %s updated (%s)", stall_id, ", ".join(sorted(clean)))
            return OperationResult.success(messages.STALL_UPDATED)

        return self._run("update_food_stall", action)

    def set_food_stall_active(self, stall_id: str, active: bool) -> OperationResult:
        return self.update_food_stall(stall_id, {"is_active": bool(active)})

    def add_food_stall_review(self, stall_id: str, review: ReviewDraft) -> OperationResult:
        def action() -> OperationResult:
            user = self._require_user()
            if user.id != review.user_id:
                raise AuthorizationError(messages.FORBIDDEN)
            rating = require_int_range(review.rating, "Rating", MIN_RATING, MAX_RATING)
            if not self._food_stalls_repo.get_by_id(stall_id):
                raise NotFoundError(messages.STALL_NOT_FOUND)
            if self._food_stalls_repo.find_review(stall_id, review.user_id):
                raise ConflictError(messages.ALREADY_REVIEWED)
            try:
                review_id = self._food_stalls_repo.create_review(
                    stall_id,
                    ReviewDraft(user_id=review.user_id, rating=rating, comment=(review.comment or "").strip()),
                )
            except ConflictError:
                raise ConflictError(messages.ALREADY_REVIEWED)
            self._reload_food_stalls()
            logger.info("Review %s added to stall %s", review_id, stall_id)
            return OperationResult.success(messages.REVIEW_ADDED, data=review_id)

        return self._run("add_food_stall_review", action)
