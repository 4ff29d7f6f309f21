"""Client-side vault gate.

Models the flip cards on the projects page and the full-page vault gate.
Each card compares whatever is typed against two shared secrets: the item
secret unlocks that card, the master secret unlocks every card on the page
and is remembered in client storage with no expiry. Nothing here ever locks
a card again.
"""
import json
import os

MASTER_SECRET = 'slate'
ITEM_SECRET = 'password'
MASTER_UNLOCKED_KEY = 'northgrave_master_unlocked'
MASTER_UNLOCKED_EVENT = 'masterUnlocked'
INCORRECT_PASSWORD = 'Incorrect password'


class MemoryStorage:
    def __init__(self, initial=None):
        self._items = dict(initial or {})

    def get_item(self, key):
        return self._items.get(key)

    def set_item(self, key, value):
        self._items[key] = str(value)

    def remove_item(self, key):
        self._items.pop(key, None)


class FileStorage(MemoryStorage):
    """Storage persisted as a JSON object, so it outlives a page."""

    def __init__(self, path):
        self.path = path
        initial = {}
        if os.path.exists(path):
            with open(path) as f:
                initial = json.load(f)
        super().__init__(initial)

    def set_item(self, key, value):
        super().set_item(key, value)
        self._write()

    def remove_item(self, key):
        super().remove_item(key)
        self._write()

    def _write(self):
        with open(self.path, 'w') as f:
            json.dump(self._items, f)


class PageEvents:
    def __init__(self):
        self._listeners = {}

    def add_listener(self, name, listener):
        self._listeners.setdefault(name, []).append(listener)

    def remove_listener(self, name, listener):
        listeners = self._listeners.get(name, [])
        if listener in listeners:
            listeners.remove(listener)

    def dispatch(self, name):
        # copy: a listener may unsubscribe while we iterate
        for listener in list(self._listeners.get(name, [])):
            listener()


def master_unlocked(storage):
    return storage.get_item(MASTER_UNLOCKED_KEY) == 'true'


class FlipCard:
    def __init__(self, item, storage, events):
        self.item = item
        self.storage = storage
        self.events = events
        self.flipped = False
        self.show_password_input = False
        self.password = ''
        self.unlocked = not item.is_vaulted
        if master_unlocked(storage):
            self._unlock_from_master()
        events.add_listener(MASTER_UNLOCKED_EVENT, self._unlock_from_master)

    def _unlock_from_master(self):
        self.unlocked = True
        self.show_password_input = True

    @property
    def entering_password(self):
        return self.show_password_input and not self.unlocked

    @property
    def deck_link(self):
        return self.item.deck_url if self.unlocked else None

    def hover(self):
        self.flipped = True

    def focus(self):
        self.flipped = True

    def leave(self):
        # stay flipped while the visitor is typing a password
        if not self.entering_password:
            self.flipped = False

    def blur(self):
        self.flipped = False

    def request_access(self):
        self.show_password_input = True

    def type_password(self, value):
        self.password = value
        if value == ITEM_SECRET:
            self.unlocked = True
        if value == MASTER_SECRET:
            self.unlocked = True
            self.storage.set_item(MASTER_UNLOCKED_KEY, 'true')
            self.events.dispatch(MASTER_UNLOCKED_EVENT)
        return self.unlocked

    def close(self):
        self.events.remove_listener(MASTER_UNLOCKED_EVENT, self._unlock_from_master)


class VaultGate:
    def __init__(self, items):
        self.items = list(items)
        self.password = ''
        self.error = None
        self.unlocked = False

    def change_password(self, value):
        self.password = value
        self.error = None

    def submit(self):
        if self.unlocked:
            return True
        if self.password == MASTER_SECRET:
            self.unlocked = True
            self.error = None
        else:
            self.error = INCORRECT_PASSWORD
        return self.unlocked

    @property
    def visible_items(self):
        return self.items if self.unlocked else []


def open_page(items, storage, events=None):
    """Mount one card per item on a shared event bus."""
    if events is None:
        events = PageEvents()
    return [FlipCard(item, storage, events) for item in items]
