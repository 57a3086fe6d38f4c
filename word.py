from functools import total_ordering
from typing import Any, Iterable, List, Optional, Tuple, Union

from utils import Cached, cached_value, classonlymethod, sign

# An atom name together with the sign of its exponent.
# The word a^3 b^-1 has the syllables ("a", 1), ("a", 1), ("a", 1), ("b", -1).
Syllable = Tuple[str, int]


class InvalidAtomName(ValueError):
    pass


@total_ordering
class Word(Cached):
    # Words are always reduced: adjacent factors with the same base are fused,
    # powers of products are expanded and a product never holds the identity.

    # Every way of building a word returns the reduced form, possibly a
    # different variant: Power(a, 1) is a, and a one-factor product is that
    # factor.

    @classonlymethod
    def identity(cls) -> "Word":
        return IDENTITY

    @classonlymethod
    def atom(cls, name: str) -> "Atom":
        return Atom(name)

    @classonlymethod
    def atoms(cls, *names: str) -> Tuple["Atom", ...]:
        # Each argument may hold several whitespace-separated names.
        res: List[Atom] = []
        for names_ in names:
            if not isinstance(names_, str):
                raise TypeError(f"Atom names must be strings, got {names_!r}")
            res.extend(Atom(name) for name in names_.split())
        return tuple(res)

    @classonlymethod
    def power(cls, base: "Word", exponent: int) -> "Word":
        return _power(base, exponent)

    @classonlymethod
    def product(cls, *factors: "Word") -> "Word":
        return _product(factors)

    @classonlymethod
    def from_syllables(cls, syllables: Iterable[Syllable]) -> "Word":
        return _from_runs(syllables)

    # Structure.

    @property
    def base(self) -> "Word":
        return self

    @property
    def exponent(self) -> int:
        return 1

    @property
    def factors(self) -> Tuple["Word", ...]:
        return (self,)

    def is_identity(self) -> bool:
        return False

    def _syllables(self) -> Tuple[Syllable, ...]:
        raise NotImplementedError

    @cached_value
    def syllables(self) -> Tuple[Syllable, ...]:
        return self._syllables()

    def flatten(self) -> Tuple["Word", ...]:
        return tuple(_syllable_word(let, s) for let, s in self.syllables())

    def size(self) -> int:
        return len(self.syllables())

    def __getitem__(self, index: Union[int, slice]) -> "Word":
        # Indexes the flattened syllables: w[:2] is the prefix of length 2.
        if isinstance(index, slice):
            return _from_runs(self.syllables()[index])
        return _syllable_word(*self.syllables()[index])

    # Algebra.

    def __mul__(self, other: "Word") -> "Word":
        if not isinstance(other, Word):
            return NotImplemented
        return _product((self, other))

    def __pow__(self, n: int) -> "Word":
        return _power(self, n)

    def __invert__(self) -> "Word":
        return _power(self, -1)

    # Order. Measured by the size, then lexicographically by the syllables.
    # A syllable sorts by the atom name, and `a` is smaller than `a^-1`.

    def lexicographically_lt(self, other: "Word") -> bool:
        for (let1, s1), (let2, s2) in zip(self.syllables(), other.syllables()):
            if let1 != let2:
                return let1 < let2
            if s1 != s2:
                return s1 > 0
        return self.size() < other.size()

    def __lt__(self, other: "Word") -> bool:
        if not isinstance(other, Word):
            return NotImplemented
        if self.size() == other.size():
            return self.lexicographically_lt(other)
        return self.size() < other.size()

    def __eq__(self, other: Any) -> bool:
        # Reduced forms are unique, so equal syllables mean equal words.
        if not isinstance(other, Word):
            return False
        return self.syllables() == other.syllables()

    def __hash__(self) -> int:
        return hash(self.syllables())

    # Structural matching. These generic versions scan the flattened
    # syllables; the variants override them where their shape gives the
    # answer directly.

    def prefix(self, w: "Word") -> Optional["Word"]:
        # If w is a prefix of self, return the part of self after w.
        s, p = self.syllables(), w.syllables()
        if s[: len(p)] != p:
            return None
        return _from_runs(s[len(p) :])

    def suffix(self, w: "Word") -> Optional["Word"]:
        # If w is a suffix of self, return the part of self before w.
        s, p = self.syllables(), w.syllables()
        n = len(s) - len(p)
        if n < 0 or s[n:] != p:
            return None
        return _from_runs(s[:n])

    def contains(self, w: "Word") -> Optional[Tuple["Word", "Word"]]:
        # If w is a subword of self, return the parts of self before and
        # after its first occurrence.
        s, p = self.syllables(), w.syllables()
        i = _find(s, p)
        if i is None:
            return None
        return _from_runs(s[:i]), _from_runs(s[i + len(p) :])

    def __contains__(self, w: "Word") -> bool:
        return self.contains(w) is not None

    def partial_prefix(
        self, w: "Word"
    ) -> Optional[Tuple["Word", "Word", "Word"]]:
        # If a non-empty suffix of w is a prefix of self, return (A, O, B) for
        # the longest such overlap O, where A is the part of w before O and B
        # is the part of self after O.
        s, p = self.syllables(), w.syllables()
        for k in range(min(len(s), len(p)), 0, -1):
            if p[len(p) - k :] == s[:k]:
                return (
                    _from_runs(p[: len(p) - k]),
                    _from_runs(s[:k]),
                    _from_runs(s[k:]),
                )
        return None

    def partial_suffix(
        self, w: "Word"
    ) -> Optional[Tuple["Word", "Word", "Word"]]:
        # If a non-empty prefix of w is a suffix of self, return (A, O, B) for
        # the longest such overlap O, where A is the part of self before O and
        # B is the part of w after O.
        s, p = self.syllables(), w.syllables()
        for k in range(min(len(s), len(p)), 0, -1):
            if s[len(s) - k :] == p[:k]:
                return (
                    _from_runs(s[: len(s) - k]),
                    _from_runs(p[:k]),
                    _from_runs(p[k:]),
                )
        return None

    def overlaps(self, w: "Word") -> Optional["Word"]:
        # If self and w share a non-empty subword, return the shortest word
        # containing both.
        if self.is_identity() or w.is_identity():
            return None
        if w in self:
            return self
        if self in w:
            return w
        candidates: List[Word] = []
        for split in (self.partial_suffix(w), self.partial_prefix(w)):
            if split is not None:
                a, o, b = split
                candidates.append(a * o * b)
        if not candidates:
            return None
        return min(candidates, key=lambda c: c.size())

    def overlap_offsets(self, w: "Word") -> List[int]:
        # All offsets i such that w, starting i syllables after the start of
        # self (i may be negative), agrees with self where the two meet.
        s, p = self.syllables(), w.syllables()
        if not s or not p:
            return []
        offsets: List[int] = []
        for i in range(1 - len(p), len(s)):
            lo, hi = max(0, i), min(len(s), len(p) + i)
            if s[lo:hi] == p[lo - i : hi - i]:
                offsets.append(i)
        return offsets

    def rewrite(self, from_: "Word", to: "Word") -> "Word":
        # Replaces every occurrence of from_, left to right, without overlaps.
        # One pass only: the result may contain new occurrences.
        if from_.is_identity():
            raise ValueError("Cannot rewrite occurrences of the identity")
        s, p = self.syllables(), from_.syllables()
        replacement = to.syllables()
        res: List[Syllable] = []
        i = 0
        changed = False
        while i + len(p) <= len(s):
            if s[i : i + len(p)] == p:
                res.extend(replacement)
                i += len(p)
                changed = True
            else:
                res.append(s[i])
                i += 1
        if not changed:
            return self
        res.extend(s[i:])
        return _from_runs(res)


class Identity(Word):
    # Use the IDENTITY constant.
    def __init__(self):
        super().__init__()

    @property
    def factors(self) -> Tuple[Word, ...]:
        return ()

    def is_identity(self) -> bool:
        return True

    def _syllables(self) -> Tuple[Syllable, ...]:
        return ()

    def size(self) -> int:
        return 0

    def __repr__(self) -> str:
        return "identity"

    def prefix(self, w: Word) -> Optional[Word]:
        return self if w.is_identity() else None

    def suffix(self, w: Word) -> Optional[Word]:
        return self if w.is_identity() else None

    def contains(self, w: Word) -> Optional[Tuple[Word, Word]]:
        return (self, self) if w.is_identity() else None

    def partial_prefix(self, w: Word) -> Optional[Tuple[Word, Word, Word]]:
        return None

    def partial_suffix(self, w: Word) -> Optional[Tuple[Word, Word, Word]]:
        return None

    def overlaps(self, w: Word) -> Optional[Word]:
        return None

    def overlap_offsets(self, w: Word) -> List[int]:
        return []

    def rewrite(self, from_: Word, to: Word) -> Word:
        return self


IDENTITY = Identity()


class Atom(Word):
    def __init__(self, name: str):
        if not isinstance(name, str):
            raise TypeError(f"Atom name must be a string, got {name!r}")
        if not name.strip():
            raise InvalidAtomName("Atom name cannot be blank")
        super().__init__()
        self.name = name

    def _syllables(self) -> Tuple[Syllable, ...]:
        return ((self.name, 1),)

    def size(self) -> int:
        return 1

    def __repr__(self) -> str:
        return self.name

    def prefix(self, w: Word) -> Optional[Word]:
        if w.is_identity():
            return self
        if w == self:
            return IDENTITY
        return None

    def suffix(self, w: Word) -> Optional[Word]:
        return self.prefix(w)

    def contains(self, w: Word) -> Optional[Tuple[Word, Word]]:
        if w.is_identity():
            return IDENTITY, self
        if w == self:
            return IDENTITY, IDENTITY
        return None

    def partial_prefix(self, w: Word) -> Optional[Tuple[Word, Word, Word]]:
        rest = w.suffix(self)
        if rest is None:
            return None
        return rest, self, IDENTITY

    def partial_suffix(self, w: Word) -> Optional[Tuple[Word, Word, Word]]:
        rest = w.prefix(self)
        if rest is None:
            return None
        return IDENTITY, self, rest

    def overlaps(self, w: Word) -> Optional[Word]:
        if self in w:
            return w
        return None

    def rewrite(self, from_: Word, to: Word) -> Word:
        return to if from_ == self else self


class Power(Word):
    # Only ever an atom raised to an exponent other than 0 and 1.
    # Power(base, exponent) is Word.power, so it may return another variant.
    def __new__(cls, base: Word, exponent: int) -> Word:  # type: ignore[misc]
        return _power(base, exponent)

    def __init__(self, base: Word, exponent: int):
        # Already set up by _make.
        pass

    @classmethod
    def _make(cls, base: Atom, exponent: int) -> "Power":
        res = object.__new__(cls)
        Cached.__init__(res)
        res._base = base
        res._exponent = exponent
        return res

    @property
    def base(self) -> Atom:
        return self._base

    @property
    def exponent(self) -> int:
        return self._exponent

    def _syllables(self) -> Tuple[Syllable, ...]:
        return ((self._base.name, sign(self._exponent)),) * abs(self._exponent)

    def size(self) -> int:
        return abs(self._exponent)

    def __repr__(self) -> str:
        return f"{self._base!r}^{self._exponent}"

    def _run(self, length: int) -> Word:
        # The power of the same atom and sign with the given length.
        return _power(self._base, sign(self._exponent) * length)

    def _run_of(self, w: Word) -> Optional[int]:
        # The length of w, if w is a power of the same atom with the same sign.
        if not isinstance(w, (Atom, Power)) or w.base != self._base:
            return None
        if sign(w.exponent) != sign(self._exponent):
            return None
        return abs(w.exponent)

    def prefix(self, w: Word) -> Optional[Word]:
        if w.is_identity():
            return self
        n = self._run_of(w)
        if n is None or n > self.size():
            return None
        return self._run(self.size() - n)

    def suffix(self, w: Word) -> Optional[Word]:
        return self.prefix(w)

    def contains(self, w: Word) -> Optional[Tuple[Word, Word]]:
        if w.is_identity():
            return IDENTITY, self
        rest = self.prefix(w)
        if rest is None:
            return None
        return IDENTITY, rest

    def partial_prefix(self, w: Word) -> Optional[Tuple[Word, Word, Word]]:
        n = self._run_of(w)
        if n is None:
            return super().partial_prefix(w)
        k = min(n, self.size())
        return self._run(n - k), self._run(k), self._run(self.size() - k)

    def partial_suffix(self, w: Word) -> Optional[Tuple[Word, Word, Word]]:
        n = self._run_of(w)
        if n is None:
            return super().partial_suffix(w)
        k = min(n, self.size())
        return self._run(self.size() - k), self._run(k), self._run(n - k)

    def overlaps(self, w: Word) -> Optional[Word]:
        n = self._run_of(w)
        if n is None:
            return super().overlaps(w)
        return self if self.size() >= n else w

    def rewrite(self, from_: Word, to: Word) -> Word:
        n = self._run_of(from_)
        if n is None:
            return super().rewrite(from_, to)
        q, r = divmod(self.size(), n)
        if q == 0:
            return self
        return to**q * self._run(r)


class Product(Word):
    # At least two factors, each an atom or a power, adjacent bases differ.
    # Product(factors) is Word.product, so it may return another variant.
    def __new__(cls, factors: Iterable[Word]) -> Word:  # type: ignore[misc]
        return _product(factors)

    def __init__(self, factors: Iterable[Word]):
        # Already set up by _make.
        pass

    @classmethod
    def _make(cls, factors: Tuple[Word, ...]) -> "Product":
        res = object.__new__(cls)
        Cached.__init__(res)
        res._factors = factors
        return res

    @property
    def factors(self) -> Tuple[Word, ...]:
        return self._factors

    def _syllables(self) -> Tuple[Syllable, ...]:
        return tuple(syl for f in self._factors for syl in f.syllables())

    def __repr__(self) -> str:
        return "".join(repr(f) for f in self._factors)


def _syllable_word(let: str, s: int) -> Word:
    return Atom(let) if s > 0 else Power._make(Atom(let), -1)


def _simple(let: str, exponent: int) -> Word:
    return Atom(let) if exponent == 1 else Power._make(Atom(let), exponent)


def _from_runs(runs: Iterable[Tuple[str, int]]) -> Word:
    # Builds the reduced word from (atom name, exponent) runs, fusing
    # neighbours with the same atom. A run that cancels out can expose two
    # more runs with the same atom, e.g. a b b^-1 a is a^2.
    stack: List[Tuple[str, int]] = []
    for let, pow in runs:
        if pow == 0:
            continue
        if stack and stack[-1][0] == let:
            pow += stack.pop()[1]
            if pow == 0:
                continue
        stack.append((let, pow))

    if not stack:
        return IDENTITY
    if len(stack) == 1:
        return _simple(*stack[0])
    return Product._make(tuple(_simple(let, pow) for let, pow in stack))


def _product(words: Iterable[Word]) -> Word:
    runs: List[Tuple[str, int]] = []
    for w in words:
        if not isinstance(w, Word):
            raise TypeError(f"Cannot multiply a word with {w!r}")
        for f in w.factors:
            runs.append((f.base.name, f.exponent))
    return _from_runs(runs)


def _power(base: Word, n: int) -> Word:
    if not isinstance(base, Word):
        raise TypeError(f"Cannot raise {base!r} to a power")
    if not isinstance(n, int) or isinstance(n, bool):
        raise TypeError(f"Exponent must be an integer, got {n!r}")
    if n == 0 or base.is_identity():
        return IDENTITY
    if n == 1:
        return base
    if isinstance(base, Atom):
        return Power._make(base, n)
    if isinstance(base, Power):
        return _power(base.base, base.exponent * n)

    # Products are expanded, inverting through the reversed factors.
    factors = base.factors if n > 0 else tuple(~f for f in reversed(base.factors))
    return _product(factors * abs(n))


def _find(s: Tuple[Syllable, ...], p: Tuple[Syllable, ...]) -> Optional[int]:
    for i in range(len(s) - len(p) + 1):
        if s[i : i + len(p)] == p:
            return i
    return None
