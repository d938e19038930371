"""
strategies.py - Hypothesis strategies and drivers shared by the conformance tests
"""

from datetime import timedelta
from decimal import Decimal

from hypothesis import strategies as st

from zippay import PaymentNetwork, ZipPayError


amounts = st.decimals(
    min_value=Decimal("-10"),
    max_value=Decimal("600"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)

operations = st.one_of(
    st.tuples(st.just("load"), amounts),
    st.tuples(st.just("request"), amounts),
    st.tuples(st.just("approve")),
    st.tuples(st.just("deny")),
    st.tuples(st.just("sync")),
    st.tuples(st.just("settle")),
    st.tuples(st.just("radio"), st.sampled_from(["bluetooth", "wifi"]), st.booleans()),
    st.tuples(st.just("toggle"), st.sampled_from(["user", "merchant"])),
    st.tuples(st.just("auto"), st.booleans()),
    st.tuples(st.just("tick"), st.integers(min_value=0, max_value=3)),
)


def apply(network: PaymentNetwork, op: tuple):
    """Run one generated operation against the network."""
    name = op[0]
    if name == "load":
        return network.load_top_up(op[1])
    if name == "request":
        return network.create_payment_request(op[1])
    if name == "approve":
        return network.resolve_payment_request(True)
    if name == "deny":
        return network.resolve_payment_request(False)
    if name == "sync":
        return network.sync_watch()
    if name == "settle":
        return network.settle_merchant()
    if name == "radio":
        return network.set_connectivity(op[1], op[2])
    if name == "toggle":
        return network.toggle_active(op[1])
    if name == "auto":
        return network.set_auto_reload(op[1])
    if name == "tick":
        return network.tick(timedelta(seconds=op[1]))
    raise ValueError(f"Unknown operation: {name}")


def try_apply(network: PaymentNetwork, op: tuple) -> bool:
    """Run op; return False if it was rejected with a ZipPayError."""
    try:
        apply(network, op)
    except ZipPayError:
        return False
    return True
