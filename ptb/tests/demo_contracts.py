"""
Entry functions of a small demo package for the simulated engine.

Type tags are derived from the package the call was routed to, so the same handlers work
under any package id (including an upgraded one).

    registry::register(name)      -> Service (owned)           emits ServiceRegistered
    fund::open()                  -> ManagerCap (owned) + Fund (shared), returns nothing
    fund::deposit(fund, amount)   -> adds a u64 to the Fund balance
    fund::open_position(fund)     -> (Capability, Position)
    fund::fail_after_create(code) -> creates a Capability, then aborts with `code`
    fund::attach(parent)          -> Ticket owned by `parent`
    fund::noop(*args)
"""

from __future__ import annotations


def _tag(ctx, module: str, name: str) -> str:
    package = ctx.target.split("::")[0]
    return f"{package}::{module}::{name}"


def registry_register(ctx, name):
    svc = ctx.create(_tag(ctx, "registry", "Service"), name.as_string().encode("utf-8"))
    ctx.emit("ServiceRegistered", {"name": name.as_string()})
    return svc


def fund_open(ctx):
    ctx.create(_tag(ctx, "fund", "ManagerCap"), b"cap")
    ctx.create_shared(_tag(ctx, "fund", "Fund"), (0).to_bytes(8, "little"))


def fund_deposit(ctx, fund, amount):
    balance = int.from_bytes(ctx.state(fund), "little") + amount.as_u64()
    ctx.mutate(fund, balance.to_bytes(8, "little"))


def fund_open_position(ctx, fund):
    cap = ctx.create(_tag(ctx, "fund", "Capability"), b"cap")
    pos = ctx.create(_tag(ctx, "fund", "Position"), ctx.state(fund))
    return cap, pos


def fund_fail_after_create(ctx, code):
    ctx.create(_tag(ctx, "fund", "Capability"), b"never")
    ctx.abort(code.as_u64(), "refused")


def fund_attach(ctx, parent):
    return ctx.create_child(parent, _tag(ctx, "fund", "Ticket"), b"ticket")


def fund_noop(ctx, *args):
    return None


DEMO_MODULES = {
    "registry": {"register": registry_register},
    "fund": {
        "open": fund_open,
        "deposit": fund_deposit,
        "open_position": fund_open_position,
        "fail_after_create": fund_fail_after_create,
        "attach": fund_attach,
        "noop": fund_noop,
    },
}
