import logging
from collections import Counter

import pytest

from completion_trace import (
    CompletionFinished,
    CriticalPairReduced,
    EventCollector,
    OverlapFound,
    RoundStarted,
    RuleAdded,
    RuleRemoved,
)
from free_monoid import FreeMonoid
from rewrite_system import (
    CompletionOverflow,
    RewriteSystem,
    RuleStore,
    critical_pairs,
    normalize,
)
from utils import sign
from word import IDENTITY, Atom, InvalidAtomName, Power, Product, Word


def S3() -> RewriteSystem:
    a, b = Word.atoms("a b")
    return RewriteSystem([a**2, b**2, (a * b) ** 3])


def test_construction():
    a, b, c = Word.atoms("a b", "c")
    e = Word.identity()

    assert e == IDENTITY
    assert isinstance(a, Atom) and a.name == "a"
    assert a == Word.atom("a")
    assert a != b

    assert a**1 == a and isinstance(a**1, Atom)
    assert a**0 == e
    assert e**5 == e
    assert isinstance(a**3, Power) and a**3 == a * a * a
    assert (a**2) ** 3 == a**6
    assert (a**-1) ** -1 == a

    assert Word.product() == e
    assert isinstance(Word.product(a), Atom)
    assert Word.product(e, a, e) == a
    assert a * a**2 == a**3
    assert a * ~a == e
    assert a * b * ~b * a == a**2
    assert (a * b) ** 2 == a * b * a * b
    assert isinstance((a * b) ** 2, Product)
    assert (a * b) ** -1 == ~b * ~a
    assert (a * b**2 * c) ** -2 == ~c * b**-2 * ~a * ~c * b**-2 * ~a
    assert (a * b**2).factors == (a, b**2)
    assert Word.from_syllables([("a", 1), ("a", 1), ("b", -1)]) == a**2 * ~b
    assert Word.from_syllables([("a", 1), ("a", -1)]) == e

    assert is_reduced(a * b * a**-1 * a * b)


def is_reduced(w: Word) -> bool:
    bases = [f.base for f in w.factors]
    return all(x != y for x, y in zip(bases, bases[1:]))


def test_direct_construction():
    a, b = Word.atoms("a b")
    e = Word.identity()

    assert Power(a, 1) == a and isinstance(Power(a, 1), Atom)
    assert Power(a, 0) is e
    assert Power(e, 4) is e
    assert isinstance(Power(a, 3), Power) and Power(a, 3) == a**3
    assert Power(a**2, -2) == a**-4
    assert Power(a * b, 2) == a * b * a * b
    assert Power(a * b, 2).syllables() == (("a", 1), ("b", 1)) * 2

    assert Product((a, a)) == a**2 and isinstance(Product((a, a)), Power)
    assert Product((a, e)) == a and isinstance(Product((a, e)), Atom)
    assert Product(()) is e
    assert Product((a, b, ~b, a)) == a**2
    assert isinstance(Product((a, b)), Product) and Product((a, b)) == a * b
    assert is_reduced(Product((a, b**2, b, a)))

    with pytest.raises(TypeError):
        Power("a", 2)
    with pytest.raises(TypeError):
        Product((a, "b"))


def test_sign():
    assert sign(-3) == -1
    assert sign(2) == 1
    with pytest.raises(ValueError, match="Sign of 0 is undefined"):
        sign(0)


def test_invalid_atoms():
    with pytest.raises(InvalidAtomName):
        Word.atom("")
    with pytest.raises(InvalidAtomName):
        Word.atom("   ")
    with pytest.raises(TypeError):
        Word.atom(3)
    with pytest.raises(TypeError):
        Word.atoms(None)
    with pytest.raises(TypeError):
        Word.atom("a") ** 1.5
    with pytest.raises(TypeError):
        IDENTITY.identity()


def test_flatten():
    a, b = Word.atoms("a b")
    w = a**3 * b**-1

    assert w.flatten() == (a, a, a, b**-1)
    assert w.syllables() == (("a", 1), ("a", 1), ("a", 1), ("b", -1))
    assert w.size() == 4
    assert IDENTITY.flatten() == ()
    assert IDENTITY.size() == 0
    assert w[1:] == a**2 * ~b
    assert w[:2] == a**2
    assert w[-1] == ~b
    assert repr(w) == "a^3b^-1"
    assert repr(IDENTITY) == "identity"


def test_order():
    a, b = Word.atoms("a b")
    e = IDENTITY

    assert e < a < ~a < b < ~b
    assert b < a**2
    assert a * b < b * a
    assert a * b * a < b * a * b
    assert a**2 * b < a * b * a
    assert not e < e
    assert e <= e

    words = list(FreeMonoid(2).words(3, inverses=True))
    for x in words:
        assert e <= x
        for y in words:
            # Total and antisymmetric.
            assert (x < y) + (y < x) + (x == y) == 1


def test_prefix_and_suffix():
    a, b, c = Word.atoms("a b c")
    w = a * b * c

    assert w.prefix(a * b) == c
    assert w.prefix(w) == IDENTITY
    assert w.prefix(IDENTITY) == w
    assert w.prefix(b) is None
    assert w.suffix(b * c) == a
    assert w.suffix(a) is None

    x = a**3
    assert x.prefix(a) == a**2
    assert x.prefix(a**3) == IDENTITY
    assert x.prefix(a**4) is None
    assert x.prefix(~a) is None
    assert x.suffix(a**2) == a
    assert (a**2 * b).prefix(a**3) is None
    assert (a**3 * b).prefix(a**2) == a * b

    assert a.prefix(a) == IDENTITY
    assert a.prefix(b) is None
    assert IDENTITY.prefix(IDENTITY) == IDENTITY
    assert IDENTITY.prefix(a) is None


def test_contains():
    a, b, c = Word.atoms("a b c")
    w = a * b * c * b

    assert w.contains(b) == (a, c * b)
    assert w.contains(b * c) == (a, b)
    assert w.contains(a * c) is None
    assert b * c in w
    assert c * a not in w
    assert (a**3).contains(a**2) == (IDENTITY, a)
    assert (b * a**3 * c).contains(a**2 * c) == (b * a, IDENTITY)
    assert a.contains(IDENTITY) == (IDENTITY, a)
    assert IDENTITY.contains(a) is None


def test_partial_overlaps():
    a, b, c = Word.atoms("a b c")

    # A suffix of `a b` is a prefix of `b c`.
    assert (b * c).partial_prefix(a * b) == (a, b, c)
    assert (a * b).partial_suffix(b * c) == (a, b, c)
    assert (a * b).partial_suffix(c) is None
    assert (a * b * a).partial_suffix(a * b * c) == (a * b, a, b * c)
    assert (a * b * a).partial_suffix(b * a * c) == (a, b * a, c)

    assert (a**3).partial_suffix(a**2) == (a, a**2, IDENTITY)
    assert (a**2).partial_suffix(a**3) == (IDENTITY, a**2, a)
    assert (a**2).partial_prefix(a**3) == (a, a**2, IDENTITY)
    assert (a**2).partial_prefix(a**-3) is None
    assert (a**2).partial_suffix(a * b) == (a, a, b)

    assert a.partial_prefix(b * a) == (b, a, IDENTITY)
    assert a.partial_suffix(a * b) == (IDENTITY, a, b)
    assert IDENTITY.partial_suffix(a) is None


def test_overlaps():
    a, b, c = Word.atoms("a b c")

    assert (a * b).overlaps(b * c) == a * b * c
    assert (b * c).overlaps(a * b) == a * b * c
    assert (a * b).overlaps(c) is None
    assert (a * b * c).overlaps(b) == a * b * c
    assert b.overlaps(a * b * c) == a * b * c
    assert (b * a).overlaps(a * b) == b * a * b

    assert (a**2).overlaps(a**3) == a**3
    assert (a**3).overlaps(a) == a**3
    assert (a**2).overlaps(a**-3) is None
    assert (a**2).overlaps(b**2) is None
    assert (a**2).overlaps(b * a) == b * a**2

    assert IDENTITY.overlaps(a) is None
    assert a.overlaps(IDENTITY) is None
    assert IDENTITY.overlaps(IDENTITY) is None

    assert (a * b).overlap_offsets(b * a) == [-1, 1]
    assert (a**2).overlap_offsets((a * b) ** 3) == [1]
    assert (a * b).overlap_offsets(c) == []
    assert (a * b * c).overlap_offsets(b) == [1]


def test_rewrite():
    a, b, c = Word.atoms("a b c")

    assert (a * b * a * b).rewrite(a * b, c) == c**2
    assert (a * b * a * b * a).rewrite(a * b * a, c) == c * b * a
    assert (a**5).rewrite(a**2, b) == b**2 * a
    assert (a**5).rewrite(a**5, IDENTITY) == IDENTITY
    assert (a**2).rewrite(a**3, b) == a**2
    assert (a**3).rewrite(~a, b) == a**3
    assert (c * a**3 * c).rewrite(a**2, b) == c * b * a * c
    assert a.rewrite(a, b * c) == b * c
    assert b.rewrite(a, c) == b
    assert IDENTITY.rewrite(a, b) == IDENTITY

    # The result is reduced again: c a^-1 next to a cancels.
    assert (b * a).rewrite(b, c * ~a) == c

    with pytest.raises(ValueError):
        (a * b).rewrite(IDENTITY, c)


def test_normalize():
    a, b = Word.atoms("a b")
    rules = {b * a: a * b}

    assert normalize(rules, b * a * b) == a * b**2
    assert normalize(rules, b**3 * a**2) == a**2 * b**3
    assert normalize({}, b * a) == b * a


def test_rule_store():
    a, b, c = Word.atoms("a b c")
    store = RuleStore()

    assert store.add_rule(a * b * c, c) == []
    assert store.add_rule(b * c, a) == [(a * b * c, c)]
    assert (b * c, a) in store
    assert (a * b * c, c) not in store
    assert len(store) == 1

    with pytest.raises(ValueError):
        store.add_rule(a, b)

    # The dropped rule a b c = c is not forgotten.
    store = RuleStore()
    store.equate(a * b * c, c)
    assert store.equate(b * c, a)
    assert dict(store.rules) == {b * c: a, a**2: c}
    assert not store.equate(a * b * c, c)

    with pytest.raises(ValueError):
        RuleStore({a: b})


def test_critical_pairs():
    a, b = Word.atoms("a b")

    pairs = list(critical_pairs((a**2, IDENTITY), ((a * b) ** 3, IDENTITY)))
    assert pairs == [(a**2 * b * a * b * a * b, b * a * b * a * b, a)]

    # Only proper self-overlaps.
    assert list(critical_pairs((b * a, a * b), (b * a, a * b))) == []
    assert len(list(critical_pairs((a**3, IDENTITY), (a**3, IDENTITY)))) == 4


def test_cyclic_group():
    (g,) = Word.atoms("g")
    system = RewriteSystem([g**3])

    assert dict(system.rules) == {g**3: IDENTITY}
    assert system.rounds == 1
    assert system.apply(g**3) == IDENTITY
    assert system.apply(g**4) == g
    assert system.apply(g**5) == g**2
    assert system.apply(g * g * g * g) == Atom("g")
    assert system[g**50] == g**2
    assert system.equal(g**7, g)

    # Inverses are ordinary syllables to the rules: g^-1 is already a normal
    # form, although g^-1 g^3 = g^2 in the same relation class.
    assert system.apply(~g) == ~g
    assert system.apply(~g * g**3) == g**2
    assert not system.equal(~g, g**2)
    assert system.apply(g**-3) == g**-3


def test_free_monoid():
    system = RewriteSystem({})

    assert len(system) == 0
    assert system.relations == ()
    assert repr(system) == "RewriteSystem{}"
    for w in FreeMonoid(("x", "y")).words(3, inverses=True):
        assert system.apply(w) == w


def test_commuting_generators():
    a, b = Word.atoms("a b")
    system = RewriteSystem([(a * b, b * a)])

    assert dict(system.rules) == {b * a: a * b}
    assert system.apply(b * a * b) == system.apply(a * b * b) == a * b**2

    # Every positive word sorts its a's before its b's.
    for w in FreeMonoid(2).words(5):
        counts = Counter(let for let, _s in w.syllables())
        assert system.apply(w) == a ** counts["a"] * b ** counts["b"]


def test_symmetric_group():
    a, b = Word.atoms("a b")
    system = S3()

    assert dict(system.rules) == {a**2: IDENTITY, b**2: IDENTITY, b * a * b: a * b * a}
    assert system.rounds == 4
    assert system.apply(b * a * b) == system.apply(a * b * a) == a * b * a
    assert system.apply(a * (a * b) ** 3) == a
    assert FreeMonoid(2).normal_forms(system, 5) == {
        IDENTITY,
        a,
        b,
        a * b,
        b * a,
        a * b * a,
    }


def test_properties():
    a, b = Word.atoms("a b")
    systems = [
        S3(),
        RewriteSystem([(a * b, b * a)]),
        RewriteSystem([Word.atom("a") ** 3]),
        RewriteSystem([a**2, (a * b) ** 2]),
    ]
    words = list(FreeMonoid(2).words(4, inverses=True))

    for system in systems:
        for left, right in system:
            # Well-founded and sound.
            assert right < left
            assert system.apply(left) == system.apply(right)
            # No left side contains another.
            for other in system.rules:
                assert other == left or other not in left
        for w in words:
            normal = system.apply(w)
            assert system.apply(normal) == normal
            assert normal <= w


def test_sampled_confluence():
    a, b = Word.atoms("a b")
    system = S3()

    # The same element reached by inserting relators in different places.
    for w in FreeMonoid(2).words(3):
        forms = {
            system.apply(w),
            system.apply(a**2 * w),
            system.apply(w * b**2),
            system.apply(w * (a * b) ** 3),
            system.apply((a * b) ** 3 * w * a**2),
        }
        assert len(forms) == 1


def test_completion_overflow():
    a, b = Word.atoms("a b")

    with pytest.raises(CompletionOverflow) as info:
        RewriteSystem([a**2, b**2, (a * b) ** 3], max_rounds=1)
    assert info.value.rounds == 1

    with pytest.raises(ValueError):
        RewriteSystem([a**2], max_rounds=0)

    # Completion of the braid relation may not terminate; either way the
    # bound holds.
    try:
        system = RewriteSystem([(a * b * a, b * a * b)], max_rounds=5)
    except CompletionOverflow as e:
        assert e.rounds == 5
    else:
        assert system.rounds <= 5


def test_relation_forms():
    (g,) = Word.atoms("g")
    expected = {g**3: IDENTITY}

    assert dict(RewriteSystem({g**3: IDENTITY}).rules) == expected
    assert dict(RewriteSystem([(IDENTITY, g**3)]).rules) == expected
    assert dict(RewriteSystem(g**3).rules) == expected
    assert RewriteSystem([g**3, g**3]).relations == ((g**3, IDENTITY),)

    with pytest.raises(TypeError):
        RewriteSystem([1])
    with pytest.raises(TypeError):
        RewriteSystem([(g, 1)])
    with pytest.raises(TypeError):
        RewriteSystem([g**3]).apply("g")


def test_systems_are_persistent():
    a, b = Word.atoms("a b")
    base = RewriteSystem([(a * b, b * a)])
    extended = base.equate(a**2)

    assert dict(base.rules) == {b * a: a * b}
    assert dict(extended.rules) == {b * a: a * b, a**2: IDENTITY}
    assert extended.relations == base.relations + ((a**2, IDENTITY),)
    assert extended.apply(a * b * a) == b
    assert base.apply(a * b * a) == a**2 * b
    assert extended.equal(b * a * a, b)

    assert dict(base.unify(a**2).rules) == dict(extended.rules)
    assert dict(base.merge({b**2: IDENTITY}).rules) == {
        b * a: a * b,
        b**2: IDENTITY,
    }
    assert base.merge({}) is base

    with pytest.raises(TypeError):
        base.rules[a] = b


def test_events():
    (g,) = Word.atoms("g")
    collector = EventCollector()
    RewriteSystem([g**3], observer=collector)

    assert collector.of_type(RuleAdded) == [RuleAdded(g**3, IDENTITY)]
    assert collector.of_type(RoundStarted) == [RoundStarted(1)]
    assert collector.of_type(CompletionFinished) == [CompletionFinished(1, 1)]
    assert len(collector.of_type(OverlapFound)) == 1
    for event, depth in collector.events:
        if isinstance(event, CriticalPairReduced):
            assert depth == 2
            assert event.reduced1 == event.reduced2

    collector = EventCollector()
    a, b = Word.atoms("a b")
    RewriteSystem([a**2, b**2, (a * b) ** 3], observer=collector)
    assert RuleRemoved((a * b) ** 3, IDENTITY) in collector.of_type(RuleRemoved)
    assert collector.of_type(CompletionFinished) == [CompletionFinished(4, 3)]


def test_logging(caplog):
    (g,) = Word.atoms("g")

    with caplog.at_level(logging.INFO, logger="completion_trace"):
        RewriteSystem([g**3])
    assert caplog.records == []

    with caplog.at_level(logging.INFO, logger="completion_trace"):
        RewriteSystem([g**3], log=True)
    assert "add rule g^3 -> identity" in caplog.text
    assert "  found overlap g^3 between g^3 -> identity and g^3 -> identity" in caplog.text
    assert "    g^4 reduces to g both ways" in caplog.text
    assert "confluent after 1 rounds with 1 rules" in caplog.text


def test_free_monoid_words():
    F = FreeMonoid(2)
    a, b = F.gens()
    e = F.identity()

    assert repr(F) == "Free Monoid over a, b"
    assert F.rank() == 2
    assert list(F.words(2)) == [e, a, b, a**2, a * b, b * a, b**2]
    assert len(list(F.words(2, inverses=True))) == 17
    assert list(FreeMonoid(0).words(3)) == [e]
    assert a * ~b in F
    assert Word.atom("c") not in F
    assert F == FreeMonoid(("a", "b"))

    system = F.rewrite_system([a**2, b**2, (a * b) ** 3])
    assert len(F.normal_forms(system, 4)) == 6

    with pytest.raises(ValueError):
        F.rewrite_system([Word.atom("c") ** 2])
    with pytest.raises(ValueError):
        FreeMonoid(("a", "a"))
