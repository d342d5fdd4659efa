import logging
import threading
from functools import lru_cache

from centers.recovery import PasswordRecovery
from centers.session import FacilityContext
from core.exceptions import AuthError
from .backup import build_backup, record_backup, restore_backup
from .edits import UnsavedEditBuffer
from .store import RecordStore
from .status import as_today, build_summary, dose_rows, summarize_child

logger = logging.getLogger(__name__)


class ImmunizationController:
    """
    The tracker's application state: the active facility, the unsaved edits
    and the in-memory list of children with their doses. Views talk to this
    object instead of reaching for module-level state.
    """

    def __init__(self):
        self.session = FacilityContext()
        self.edits = UnsavedEditBuffer()
        self._children = None
        # Saves run one after another; a second save for a child waits for the first.
        self._write_lock = threading.RLock()

    # --- Session ---

    def start(self):
        self.session.resume()
        self._reset()
        return self.session.facility

    def login(self, code, password):
        facility = self.session.login(code, password)
        self._reset()
        return facility

    def logout(self):
        self.session.logout()
        self._reset()

    def register_facility(self, **fields):
        facility = self.session.register_facility(**fields)
        self._reset()
        return facility

    def change_password(self, current_password, new_password, confirm_password):
        self.session.change_password(current_password, new_password, confirm_password)

    def start_recovery(self):
        return PasswordRecovery()

    def delete_facility(self, password):
        facility = self.session.require_facility()
        if not facility.check_password(password):
            raise AuthError("Password is incorrect.")
        with self._write_lock:
            self.store.purge_facility()
        self.session.facility = None
        self._reset()

    @property
    def store(self):
        return RecordStore(self.session.require_facility())

    # --- Children ---

    def children(self, refresh=False):
        if self._children is None or refresh:
            self._children = self.store.list_children()
        return self._children

    def get_child(self, child_id):
        for child in self.children():
            if child.pk == child_id:
                return child
        return self.store.get_child(child_id)

    def create_child(self, **fields):
        with self._write_lock:
            child = self.store.create_child(**fields)
        self._children = None
        return child

    def update_child(self, child_id, **fields):
        with self._write_lock:
            before = self.store.get_child(child_id)
            child = self.store.update_child(child_id, **fields)
        old_key = self.child_key(before)
        if old_key != self.child_key(child) and self.edits.has_edits(old_key):
            # Name changed: move pending edits to the new key.
            for vaccine, value in self.edits.edits_for(old_key).items():
                self.edits.track_edit(self.child_key(child), vaccine, value)
            self.edits.clear(old_key)
        self._children = None
        return child

    def delete_child(self, child_id):
        with self._write_lock:
            child = self.store.get_child(child_id)
            self.store.delete_child(child_id)
        self.edits.clear(self.child_key(child))
        self._children = None

    # --- Doses ---

    @staticmethod
    def child_key(child):
        return UnsavedEditBuffer.child_key(child.reg_no, child.name)

    def track_edit(self, child_id, vaccine, value):
        child = self.get_child(child_id)
        self.edits.track_edit(self.child_key(child), vaccine, value)

    def discard_edits(self, child_id):
        self.edits.clear(self.child_key(self.get_child(child_id)))

    def display_doses(self, child_id):
        child = self.get_child(child_id)
        return self.edits.overlay(self.child_key(child), self.store.list_doses_for_child(child_id))

    def bookable_vaccines(self, child_id):
        child = self.get_child(child_id)
        return self.edits.bookable_vaccines(self.child_key(child), self.store.list_doses_for_child(child_id))

    def save_doses(self, child_id, dose_records, booking=None, today=None):
        with self._write_lock:
            child = self.store.get_child(child_id)
            doses = self.store.replace_child_doses(child_id, dose_records, booking=booking, today=today)
        self.edits.clear(self.child_key(child))
        self._children = None
        return doses

    # --- Summaries ---

    def summary(self, today=None):
        return build_summary(self.children(), as_today(today))

    def child_status(self, child_id, today=None):
        child = self.get_child(child_id)
        return summarize_child(child, self.store.list_doses_for_child(child_id), as_today(today))

    def records(self, today=None):
        return dose_rows(self.children(), as_today(today))

    # --- Backup ---

    def backup(self, keep=True):
        document = build_backup(self.store)
        if keep:
            record_backup(self.store, document)
        return document

    def restore(self, document):
        with self._write_lock:
            counts = restore_backup(self.store, document)
        self.edits.clear_all()
        self._children = None
        return counts

    def _reset(self):
        self.edits.clear_all()
        self._children = None


@lru_cache(maxsize=None)
def get_controller():
    """The process-wide controller, resumed from the last session on first use."""
    controller = ImmunizationController()
    controller.start()
    return controller
