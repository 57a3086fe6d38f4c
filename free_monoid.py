import itertools
from typing import Any, Iterator, List, Optional, Set, Tuple

from rewrite_system import Relations, RewriteSystem, relation_pairs
from word import IDENTITY, Atom, Word


class FreeMonoid:
    def __init__(self, _gens: Tuple[str, ...] | int, name: Optional[str] = None):
        self._name = name
        if isinstance(_gens, int):
            gen_names: Tuple[str, ...] = tuple(chr(ord("a") + i) for i in range(_gens))
        else:
            gen_names = _gens
        if len(set(gen_names)) != len(gen_names):
            raise ValueError(f"Generator names must be distinct: {gen_names}")
        self._gens = tuple(Word.atom(gen_name) for gen_name in gen_names)

    def gens(self) -> Tuple[Atom, ...]:
        return self._gens

    def __repr__(self):
        return (
            f"Free Monoid over {', '.join(repr(gen) for gen in self._gens)}"
            if self._name is None
            else self._name
        )

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, FreeMonoid):
            return False
        return self._gens == other._gens

    def __hash__(self):
        return hash(("Free Monoid", self._gens))

    def identity(self) -> Word:
        return IDENTITY

    def rank(self) -> int:
        return len(self._gens)

    def __contains__(self, w: Word) -> bool:
        names = {gen.name for gen in self._gens}
        return all(let in names for let, _s in w.syllables())

    def words(
        self, max_len: Optional[int] = None, *, inverses: bool = False
    ) -> Iterator[Word]:
        # Iterates over the reduced words, by increasing length. With inverses,
        # these are the words of the free group: no x next to x^-1.
        letters: List[Word] = list(self._gens)
        if inverses:
            letters += [~gen for gen in self._gens]

        def paths(w: Word, len: int) -> Iterator[Word]:
            if len == 0:
                yield w
            else:
                for let in letters:
                    if w.size() > 0 and w[-1] == ~let:
                        continue
                    yield from paths(w * let, len - 1)

        for len in itertools.count(0):
            if max_len is not None and len > max_len:
                break
            if not letters and len > 0:
                break
            yield from paths(self.identity(), len)

    def rewrite_system(self, relations: Relations = (), **kwargs) -> RewriteSystem:
        pairs = relation_pairs(relations)
        for left, right in pairs:
            if left not in self or right not in self:
                raise ValueError(f"Relation {left} = {right} is not over {self}")
        return RewriteSystem(pairs, **kwargs)

    def normal_forms(self, system: RewriteSystem, max_len: int) -> Set[Word]:
        # The distinct normal forms of all words up to max_len.
        return {system.apply(w) for w in self.words(max_len)}
