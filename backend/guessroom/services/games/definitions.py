import random
from typing import NamedTuple, Optional, Sequence


class Definition(NamedTuple):
    word: str
    definition: str
    hint1: str
    hint2: str


CATALOG = (
    Definition('PILLOW', 'A celestial cushion of divine comfort, blessed by the gods for mortal repose',
               'Soft as a cloud', 'Found where mortals rest'),
    Definition('MIRROR', 'A mystical portal that captures the essence of mortal reflection',
               'Shows truth', 'Reflects divine light'),
    Definition('TOASTER', 'A metallic chamber that performs ritual bread ascension ceremonies',
               'Transforms bread', 'Morning ritual device'),
    Definition('PENCIL', 'A wooden wand infused with graphite magic for manifesting mortal thoughts',
               'Leaves marks', 'Erasable wisdom'),
    Definition('CLOCK', 'A mystical circle that imprisons time itself in an eternal dance',
               'Never stops moving', 'Measures mortal moments'),
    Definition('UMBRELLA', "A divine shield bestowed upon mortals to ward off Zeus's tears",
               'Protects from above', 'Opens like angel wings'),
    Definition('KEYBOARD', 'A mystical array of runes that channel thoughts into digital reality',
               'Letter symphony', 'Finger dancing platform'),
    Definition('CAMERA', "A magical eye that steals moments from time's eternal flow",
               'Captures memories', 'Light trapper'),
    Definition('CHAIR', 'A four-legged throne that grants momentary respite to weary mortals',
               'Supports the tired', 'Found at tables'),
    Definition('BLANKET', "A woven shield against the night's ethereal chill",
               'Warmth weaver', 'Bed companion'),
)


class DefinitionProvider:
    """Picks a definition uniformly at random; repeats across rounds are allowed."""

    def __init__(self, catalog: Optional[Sequence[Definition]] = None, rng: Optional[random.Random] = None):
        self.catalog = tuple(catalog) if catalog is not None else CATALOG
        if not self.catalog:
            raise ValueError('definition catalog is empty')
        self._rng = rng or random.Random()

    def get_next_definition(self) -> Definition:
        return self._rng.choice(self.catalog)
