from types import MappingProxyType
from typing import (
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from completion_trace import (
    CompletionFinished,
    CompletionTrace,
    CriticalPairReduced,
    Observer,
    OverlapFound,
    RoundStarted,
    RuleAdded,
    RuleRemoved,
    log_event,
)
from word import IDENTITY, Word

# The reference bound has no derivation behind it, so it is only a default.
DEFAULT_MAX_ROUNDS = 100

Rule = Tuple[Word, Word]
Relations = Union[Mapping[Word, Word], Iterable[Union[Word, Tuple[Word, Word]]]]


class CompletionOverflow(RuntimeError):
    def __init__(self, rounds: int, rules: int):
        super().__init__(
            f"Rewrite system could not be completed in {rounds} rounds ({rules} rules so far)"
        )
        self.rounds = rounds
        self.rules = rules


def normalize(rules: Mapping[Word, Word], word: Word) -> Word:
    # Every rule decreases the word in the short-lex order, so this stops.
    while True:
        res = word
        for left, right in rules.items():
            res = res.rewrite(left, right)
        if res == word:
            return word
        word = res


def critical_pairs(
    rule1: Rule, rule2: Rule
) -> Iterator[Tuple[Word, Word, Word]]:
    # For every way the left sides overlap, yields the overlap word together
    # with the results of applying each rule at its place in it.
    (l1, r1), (l2, r2) = rule1, rule2
    s1, s2 = l1.syllables(), l2.syllables()
    for i in l1.overlap_offsets(l2):
        if i == 0 and l1 == l2:
            continue
        if i >= 0:
            start1, start2 = 0, i
            word = s1 + s2[len(s1) - i :]
        else:
            start1, start2 = -i, 0
            word = s2 + s1[len(s2) + i :]
        end1, end2 = start1 + len(s1), start2 + len(s2)
        yield (
            Word.from_syllables(word),
            Word.product(
                Word.from_syllables(word[:start1]), r1, Word.from_syllables(word[end1:])
            ),
            Word.product(
                Word.from_syllables(word[:start2]), r2, Word.from_syllables(word[end2:])
            ),
        )


class RuleStore:
    # Invariants: left > right for every rule, and no left side contains
    # another one.
    def __init__(
        self,
        rules: Optional[Mapping[Word, Word]] = None,
        trace: Optional[CompletionTrace] = None,
    ):
        self.rules: Dict[Word, Word] = {}
        self.trace = trace if trace is not None else CompletionTrace()
        for left, right in (rules or {}).items():
            if not right < left:
                raise ValueError(f"Rule {left} -> {right} does not decrease")
            self.rules[left] = right

    def __contains__(self, rule: Rule) -> bool:
        left, right = rule
        return left in self.rules and self.rules[left] == right

    def __len__(self) -> int:
        return len(self.rules)

    def reduce(self, word: Word) -> Word:
        return normalize(self.rules, word)

    def add_rule(self, left: Word, right: Word) -> List[Rule]:
        # Rules whose left side contains the new one can now be reduced, so
        # they are dropped. They are returned since their equations still hold.
        if not right < left:
            raise ValueError(f"Rule {left} -> {right} does not decrease")
        removed = [(l, r) for l, r in self.rules.items() if left in l]
        with self.trace.nested(RuleAdded(left, right)):
            for l, r in removed:
                del self.rules[l]
                self.trace.emit(RuleRemoved(l, r))
        self.rules[left] = right
        return removed

    def equate(self, a: Word, b: Word) -> bool:
        # Adds a rule for a = b, unless it already follows from the store.
        # Returns whether anything was added.
        added = False
        pending: List[Rule] = [(a, b)]
        while pending:
            a, b = pending.pop()
            a, b = self.reduce(a), self.reduce(b)
            if a == b:
                continue
            left, right = (a, b) if b < a else (b, a)
            pending.extend(self.add_rule(left, right))
            added = True
        return added

    def interreduce(self):
        self.rules = {left: self.reduce(right) for left, right in self.rules.items()}


def complete(store: RuleStore, max_rounds: int = DEFAULT_MAX_ROUNDS) -> int:
    # Resolves critical pairs until a whole round adds no rule, and returns
    # the number of rounds that took. Completion need not terminate, hence
    # the bound.
    trace = store.trace
    for n in range(1, max_rounds + 1):
        added = False
        with trace.nested(RoundStarted(n)):
            rules = list(store.rules.items())
            for i, rule1 in enumerate(rules):
                # A rule is paired with itself too, for its proper self-overlaps.
                for rule2 in rules[i:]:
                    if rule1 not in store or rule2 not in store:
                        continue
                    overlap = rule1[0].overlaps(rule2[0])
                    if overlap is None:
                        continue
                    pairs = list(critical_pairs(rule1, rule2))
                    if not pairs:
                        continue
                    with trace.nested(OverlapFound(rule1, rule2, overlap)):
                        for word, w1, w2 in pairs:
                            reduced1, reduced2 = store.reduce(w1), store.reduce(w2)
                            trace.emit(CriticalPairReduced(word, reduced1, reduced2))
                            if store.equate(reduced1, reduced2):
                                added = True
        if not added:
            store.interreduce()
            trace.emit(CompletionFinished(n, len(store)))
            return n
    raise CompletionOverflow(max_rounds, len(store))


def relation_pairs(relations: Relations) -> List[Rule]:
    if isinstance(relations, Word):
        items: Iterable = [relations]
    elif isinstance(relations, Mapping):
        items = relations.items()
    else:
        items = relations

    pairs: List[Rule] = []
    for relation in items:
        if isinstance(relation, Word):
            # A lone word is asserted to be the identity.
            pair = (relation, IDENTITY)
        elif isinstance(relation, tuple) and len(relation) == 2:
            pair = relation
        else:
            raise TypeError(f"Invalid relation {relation!r}")
        if not all(isinstance(w, Word) for w in pair):
            raise TypeError(f"Relations must be between words, got {pair!r}")
        pairs.append(pair)
    return pairs


class RewriteSystem:
    # Built once and never changed. equate and merge return new systems.
    def __init__(
        self,
        relations: Relations = (),
        *,
        log: bool = False,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        observer: Optional[Observer] = None,
        rules: Optional[Mapping[Word, Word]] = None,
    ):
        # `rules` seeds the completion with the rules of a system that is
        # already complete; merge uses it to avoid starting over.
        if max_rounds < 1:
            raise ValueError(f"max_rounds must be positive, got {max_rounds}")
        self.log = log
        self.max_rounds = max_rounds
        self.observer = observer
        self._relations: Tuple[Rule, ...] = tuple(
            dict.fromkeys(relation_pairs(relations))
        )

        store = RuleStore(rules, CompletionTrace(log_event if log else None, observer))
        for a, b in self._relations:
            store.equate(a, b)
        self.rounds = complete(store, max_rounds)
        self._rules: Mapping[Word, Word] = MappingProxyType(store.rules)

    @property
    def relations(self) -> Tuple[Rule, ...]:
        return self._relations

    @property
    def rules(self) -> Mapping[Word, Word]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.items())

    def __repr__(self) -> str:
        rules = ", ".join(f"{left} -> {right}" for left, right in self)
        return f"RewriteSystem{{{rules}}}"

    def apply(self, word: Word) -> Word:
        if not isinstance(word, Word):
            raise TypeError(f"Cannot normalize {word!r}")
        return normalize(self._rules, word)

    def __getitem__(self, word: Word) -> Word:
        return self.apply(word)

    def equal(self, a: Word, b: Word) -> bool:
        return self.apply(a) == self.apply(b)

    def merge(self, relations: Relations) -> "RewriteSystem":
        extra = relation_pairs(relations)
        if not extra:
            return self
        return RewriteSystem(
            self._relations + tuple(extra),
            log=self.log,
            max_rounds=self.max_rounds,
            observer=self.observer,
            rules=self._rules,
        )

    def equate(self, a: Word, b: Word = IDENTITY) -> "RewriteSystem":
        return self.merge([(a, b)])

    def unify(self, a: Word) -> "RewriteSystem":
        return self.equate(a)
