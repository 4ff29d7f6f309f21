import json
from dataclasses import dataclass

DEFAULT_DECK_URL = 'https://jetx.storydoc.com/91t8BC'


@dataclass(frozen=True)
class GatedItem:
    id: str
    title: str
    slug: str
    poster: str
    logline: str
    year: str = ''
    genre: str = ''
    status: str = ''
    is_vaulted: bool = True
    deck_url: str = DEFAULT_DECK_URL

    @classmethod
    def from_dict(cls, data):
        """Build an item from a project record; accepts the site's camelCase keys."""
        is_vaulted = data.get('is_vaulted', data.get('isVaulted', True))
        deck_url = data.get('deck_url', data.get('deckUrl', DEFAULT_DECK_URL))
        return cls(
            id=str(data['id']),
            title=data['title'],
            slug=data.get('slug', str(data['id'])),
            poster=data.get('poster', ''),
            logline=data.get('logline', ''),
            year=str(data.get('year', '')),
            genre=data.get('genre', ''),
            status=data.get('status', ''),
            is_vaulted=bool(is_vaulted),
            deck_url=deck_url,
        )


def load_items(path):
    with open(path) as f:
        records = json.load(f)
    return [GatedItem.from_dict(record) for record in records]
