# src/rtt/cli.py
"""
rtt CLI

Subcommands:
  - plot            Summarize a rate matrix and draw the band/curve figure
  - summarize       Summarize a rate matrix and write the bands/curve as JSON
  - verify-audit    Verify the tamper-evident JSONL audit chain

Examples:
  python -m rtt.cli plot \
      --matrix runs/whales_rtt.npz \
      --fig paper/figures/speciation_rtt.pdf \
      --intervals 0.05,0.95 --smooth --span 0.3 \
      --audit runs/audit.jsonl

  python -m rtt.cli summarize --matrix runs/whales_rtt.npz --ratetype netdiv --out results/netdiv.json
  python -m rtt.cli verify-audit --audit runs/audit.jsonl
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

from rtt.core.errors import RttError
from rtt.core.models import RateThroughTimeSummary, RttOptions
from rtt.envelope.pipeline import resolve_source, summarize
from rtt.io import audit, config, storage

log = logging.getLogger("rtt.cli")


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _float_list(text: str) -> List[float]:
    """Parse '0.05,0.95' (or 'none' for no bands)."""
    if text.strip().lower() in ("none", "null", ""):
        return []
    try:
        return [float(tok) for tok in text.split(",") if tok.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected comma-separated numbers, got {text!r}") from exc


def _bounds(text: str) -> Any:
    """Parse 'auto' or 'lo,hi'."""
    if text.strip().lower() == "auto":
        return "auto"
    return _float_list(text)


def _add_summary_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--matrix", required=True, help="Path to .npz rate matrix (times + lambda/mu or beta)")
    p.add_argument("--config", default=None, help="Optional YAML file with summary options")
    p.add_argument("--ratetype", default=None, help="auto | speciation | extinction | netdiv | trait")
    p.add_argument("--median", dest="use_median", action="store_const", const=True, default=None,
                   help="Central curve is the median instead of the mean")
    p.add_argument("--intervals", type=_float_list, default=None,
                   help="Comma-separated quantile levels, or 'none' for no bands")
    p.add_argument("--smooth", action="store_const", const=True, default=None,
                   help="LOWESS-smooth band edges and the central curve")
    p.add_argument("--span", dest="smooth_param", type=float, default=None, help="LOWESS span in (0,1]")
    p.add_argument("--audit", default=None, help="Append a record to this JSONL audit chain")
    p.add_argument("--log-level", default="WARNING", help="Python logging level (default: WARNING)")


def _options_from_args(args: argparse.Namespace, **extra: Any) -> RttOptions:
    overrides: Dict[str, Any] = {
        "ratetype": args.ratetype,
        "use_median": args.use_median,
        "intervals": args.intervals,
        "smooth": args.smooth,
        "smooth_param": args.smooth_param,
    }
    overrides.update(extra)
    return config.load_config(args.config, **overrides)


def _summarize_from_args(args: argparse.Namespace, opts: RttOptions) -> RateThroughTimeSummary:
    rmat = storage.load_rate_matrix(args.matrix)
    log.info("loaded %s matrix %s from %s", rmat.source_type.value, rmat.shape, args.matrix)
    return summarize(resolve_source(rmat, opts), opts)


def _maybe_audit(
    args: argparse.Namespace,
    opts: RttOptions,
    summary: RateThroughTimeSummary,
    command: str,
    outputs: Sequence[str],
) -> Optional[str]:
    if not args.audit:
        return None
    rec = audit.make_record(
        opts,
        summary,
        command=command,
        inputs={str(args.matrix): storage.hash_file(args.matrix)},
        outputs=outputs,
    )
    return audit.append_jsonl(args.audit, rec)


# -----------------------------------------------------------------------------
# Subcommands
# -----------------------------------------------------------------------------

def _cmd_plot(argv: List[str]) -> None:
    p = argparse.ArgumentParser(
        prog="rtt.cli plot",
        description="Summarize a rate matrix and draw quantile bands with the central curve.",
    )
    _add_summary_args(p)
    p.add_argument("--fig", required=True, help="Output figure path (PNG/PDF)")
    p.add_argument("--xlim", type=_bounds, default=None, help="'auto' or 'max,min' on the time-since-present axis")
    p.add_argument("--ylim", type=_bounds, default=None, help="'auto' or 'min,max' on the rate axis")
    p.add_argument("--opacity", type=float, default=None, help="Band fill opacity in [0,1]")
    p.add_argument("--interval-col", default=None, help="Band fill color")
    p.add_argument("--avg-col", default=None, help="Central curve color")
    args = p.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    from rtt.analysis.render import drawing_surface, render_summary, save_figure

    opts = _options_from_args(
        args,
        xlim=args.xlim,
        ylim=args.ylim,
        opacity=args.opacity,
        interval_col=args.interval_col,
        avg_col=args.avg_col,
        plot=True,
        add=False,
    )
    summary = _summarize_from_args(args, opts)
    with drawing_surface() as ax:
        render_summary(summary, opts, ax=ax)
        fig_path = save_figure(ax, args.fig)

    print(f"figure: {fig_path} ({len(summary.bands)} bands, {summary.rate_label.lower()})")
    sha = _maybe_audit(args, opts, summary, "plot", [fig_path])
    if sha:
        print(f"audit_sha: {sha}")


def _cmd_summarize(argv: List[str]) -> None:
    p = argparse.ArgumentParser(
        prog="rtt.cli summarize",
        description="Summarize a rate matrix and write bands, central curve and times as JSON.",
    )
    _add_summary_args(p)
    p.add_argument("--out", required=True, help="Output JSON path")
    args = p.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    opts = _options_from_args(args, plot=False)
    summary = _summarize_from_args(args, opts)
    out = storage.save_summary(summary, args.out)

    print(f"summary: {out} (blake3 {summary.blake3_hash()[:16]})")
    sha = _maybe_audit(args, opts, summary, "summarize", [str(out)])
    if sha:
        print(f"audit_sha: {sha}")


def _cmd_verify_audit(argv: List[str]) -> None:
    p = argparse.ArgumentParser(
        prog="rtt.cli verify-audit",
        description="Verify integrity of the append-only JSONL audit chain.",
    )
    p.add_argument("--audit", required=True, help="Path to JSONL audit log")
    args = p.parse_args(argv)
    n = audit.verify_chain(args.audit)
    print(f"audit chain OK ({n} records)")


# -----------------------------------------------------------------------------
# Entrypoint
# -----------------------------------------------------------------------------

_COMMANDS = {
    "plot": _cmd_plot,
    "summarize": _cmd_summarize,
    "verify-audit": _cmd_verify_audit,
}


def main(argv: Optional[List[str]] = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        print("Usage: python -m rtt.cli {plot|summarize|verify-audit} ...", file=sys.stderr)
        sys.exit(2)

    cmd, rest = argv[0], argv[1:]
    handler = _COMMANDS.get(cmd)
    if handler is None:
        print(f"unknown subcommand: {cmd}", file=sys.stderr)
        sys.exit(2)
    try:
        handler(rest)
    except RttError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
