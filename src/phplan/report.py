# src/phplan/report.py
from pathlib import Path
import json, datetime
from typing import Optional, Union

import pandas as pd

from phplan.plan import Plan

CSV_COLUMNS = ["type", "pa_ids", "checkmarks", "text"]
PA_DELIMITER = "|"


def plan_to_frame(plan: Plan) -> pd.DataFrame:
    """One row per merged item, core first; columns match the CSV export."""
    records = []
    for bucket, rows in (("core", plan.core), ("specialized", plan.specialized)):
        for r in rows:
            records.append({
                "type": bucket,
                "pa_ids": PA_DELIMITER.join(r.pas),
                "checkmarks": r.checkmarks,
                "text": r.text,
            })
    return pd.DataFrame.from_records(records, columns=CSV_COLUMNS)


def plan_to_csv(plan: Plan) -> str:
    return plan_to_frame(plan).to_csv(index=False, lineterminator="\n")


def write_plan_csv(plan: Plan, path: Union[str, Path]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(plan_to_csv(plan), encoding="utf-8")
    return p


def save_plan_report(result: dict, outdir: Path, display_cap: Optional[int] = 30):
    """
    Write the CLI/app result as JSON plus a Markdown card.

    result: {"audience", "ephfs", "pas", "roles", "plan": Plan.to_dict(), "tasks"}
    """
    outdir.mkdir(parents=True, exist_ok=True)
    ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    json_path = outdir / f"learning_plan_{ts}.json"
    md_path   = outdir / f"learning_plan_{ts}.md"

    with open(json_path, "w") as f:
        json.dump(result, f, indent=2)

    plan = result.get("plan") or {}
    md = []
    md.append(f"# Learning plan ({result.get('audience') or 'learner'})")
    md.append(f"**EPHFs:** {', '.join(result.get('ephfs', [])) or '—'}  |  **PAs:** {', '.join(result.get('pas', [])) or '—'}")
    md.append(f"**Total items:** {plan.get('total', 0)}  |  **Policy:** {plan.get('policy', '')}\n")

    roles = result.get("roles") or []
    if roles:
        md.append("## Role fit")
        md.append("| role | score | fit | matched EPHFs |")
        md.append("|---|---:|---|---|")
        for r in roles:
            md.append(f"| {r['title']} | {r['score']:.2f} | {r['fit']} | {', '.join(r['matched_ephfs'])} |")

    for bucket in ("core", "specialized"):
        rows = plan.get(bucket) or []
        md.append(f"\n## {bucket.title()} — {len(rows)}")
        shown = rows if display_cap is None else rows[:display_cap]
        for r in shown:
            md.append(f"- {r['text']} _(ticks: {r['checkmarks']}, from {', '.join(r['pas'])})_")
        if len(rows) > len(shown):
            md.append(f"- +{len(rows) - len(shown)} more")

    tasks = result.get("tasks") or []
    if tasks:
        md.append("\n## Profile-specific tasks")
        for t in tasks:
            md.append(f"- [{t['pa']}] {t['task']}")

    with open(md_path, "w") as f:
        f.write("\n".join(md))

    return json_path, md_path
