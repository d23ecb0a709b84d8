#!/usr/bin/env python
import argparse, json, sys
from pathlib import Path

from phplan.catalog import load_catalog
from phplan.plan import BucketPolicy, build_plan, profile_tasks
from phplan.profile import build_profile
from phplan.recommend import all_pas, recommend_pas, recommendation_frame
from phplan.report import save_plan_report, write_plan_csv
from phplan.scoring import rank_roles
from phplan.settings import configure_logging, load_settings


def _cmd_recommend(args, catalog, settings):
    items = all_pas(catalog.pas) if args.all else recommend_pas(args.ephf or [], catalog.ephf_to_pas)
    titles = {pid: catalog.pa_title(pid) for pid in catalog.pas}
    if args.table:
        print(recommendation_frame(items, titles).to_string(index=False))
    else:
        print(json.dumps([{**it, "title": titles.get(it["id"], it["id"])} for it in items], indent=2))
    return 0


def _profile_from_args(args):
    criteria = {}
    if args.profile:
        criteria["profile"] = args.profile
    if args.style:
        criteria["role_style"] = args.style
    comp = {}
    for kv in args.comp or []:
        name, _, lvl = kv.partition("=")
        comp[name] = lvl or 0
    return build_profile(args.ephf or [], args.pa or [], comp, criteria)


def _cmd_roles(args, catalog, settings):
    profile = _profile_from_args(args)
    top = args.top if args.top is not None else settings.top_roles
    rows = rank_roles(profile, catalog.roles, catalog.scoring, top=top)
    print(json.dumps(rows, indent=2))
    return 0


def _cmd_plan(args, catalog, settings):
    raw_policy = args.policy or settings.bucket_policy
    try:
        policy = BucketPolicy(raw_policy)
    except ValueError:
        valid = ", ".join(b.value for b in BucketPolicy)
        print(f"error: unknown bucket policy {raw_policy!r} (expected one of: {valid})", file=sys.stderr)
        return 1
    plan = build_plan(args.pa, catalog.pas, policy=policy)
    tasks = profile_tasks(args.pa, catalog.pas, args.profile) if args.profile else []
    result = {
        "audience": args.audience,
        "ephfs": args.ephf or [],
        "pas": args.pa,
        "roles": [],
        "plan": plan.to_dict(),
        "tasks": tasks,
    }
    if args.ephf:
        profile = _profile_from_args(args)
        result["roles"] = rank_roles(profile, catalog.roles, catalog.scoring, top=settings.top_roles)

    print(json.dumps(result, indent=2))

    if args.csv:
        print("CSV ->", write_plan_csv(plan, args.csv), file=sys.stderr)
    if args.report_dir:
        json_path, md_path = save_plan_report(result, args.report_dir, display_cap=settings.display_cap)
        print("Report ->", json_path, md_path, file=sys.stderr)
    return 0


def main(argv=None):
    settings = load_settings()

    ap = argparse.ArgumentParser(description="EPHF program builder: recommend PAs, rank roles, build a study plan")
    ap.add_argument("--data-dir", type=Path, default=settings.data_dir, help="catalog directory (PHPLAN_DATA_DIR)")
    ap.add_argument("--log-level", default=settings.log_level, help="logging level (PHPLAN_LOG_LEVEL)")
    sub = ap.add_subparsers(dest="cmd", required=True)

    rec = sub.add_parser("recommend", help="suggest practice activities for selected EPHFs")
    rec.add_argument("--ephf", nargs="*", help="selected EPHF ids")
    rec.add_argument("--all", action="store_true", help="list every PA (score 0) instead of recommending")
    rec.add_argument("--table", action="store_true", help="print a table instead of JSON")
    rec.set_defaults(func=_cmd_recommend)

    for name, helptext in (("roles", "rank roles by fit"), ("plan", "build the deduplicated study plan")):
        p = sub.add_parser(name, help=helptext)
        p.add_argument("--ephf", nargs="*", help="selected EPHF ids")
        p.add_argument("--pa", nargs="*" if name == "roles" else "+", required=(name == "plan"),
                       help="selected practice activity ids")
        p.add_argument("--profile", default=None, help="workforce profile id (e.g. p1)")
        p.add_argument("--style", default=None, help="preferred role style (e.g. field)")
        p.add_argument("--comp", nargs="*", help="competency levels as name=level")
        if name == "roles":
            p.add_argument("--top", type=int, default=None, help="how many roles to show (PHPLAN_TOP_ROLES)")
            p.set_defaults(func=_cmd_roles)
        else:
            p.add_argument("--policy", choices=[b.value for b in BucketPolicy], default=None,
                           help="bucketing policy (PHPLAN_BUCKET_POLICY)")
            p.add_argument("--audience", choices=["educator", "learner"], default="learner")
            p.add_argument("--csv", type=Path, default=None, help="write the plan as CSV here")
            p.add_argument("--report-dir", type=Path, default=None, help="write JSON + Markdown report here")
            p.set_defaults(func=_cmd_plan)

    args = ap.parse_args(argv)
    configure_logging(args.log_level)

    try:
        catalog = load_catalog(args.data_dir)
    except (FileNotFoundError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return args.func(args, catalog, settings)


if __name__ == "__main__":
    sys.exit(main())
