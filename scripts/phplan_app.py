# scripts/phplan_app.py
import pandas as pd
import streamlit as st
import plotly.graph_objects as go

# ---- Local imports (phplan must be importable; pip install -e . or PYTHONPATH=src) ----
from phplan.catalog import load_catalog
from phplan.plan import BucketPolicy, build_plan, profile_tasks
from phplan.profile import build_profile
from phplan.recommend import all_pas, recommend_pas, search_pas
from phplan.report import plan_to_csv
from phplan.scoring import rank_roles
from phplan.settings import configure_logging, load_settings

# =========================
# PAGE CONFIG
# =========================
st.set_page_config(
    page_title="Program builder",
    page_icon="🧭",
    layout="wide",
)

SETTINGS = load_settings()
configure_logging(SETTINGS.log_level)

AUDIENCES = {"educator": "Educator / program lead", "learner": "Learner / student (beta)"}
# the educator flow ranks shared items by how many PAs they come from
AUDIENCE_POLICY = {"educator": BucketPolicy.CROSS_PA_FREQUENCY, "learner": BucketPolicy.CHECKMARK_THRESHOLD}

# =========================
# SESSION STATE INIT
# =========================
_DEFAULTS = {
    "step": 0,
    "audience": None,
    "ephf_selected": [],
    "pa_selected": [],
    "show_all_pas": False,
}
for k, v in _DEFAULTS.items():
    if k not in st.session_state:
        st.session_state[k] = list(v) if isinstance(v, list) else v

# =========================
# CACHING HELPERS
# =========================
@st.cache_resource(show_spinner=False)
def read_catalog_cached(data_dir: str):
    return load_catalog(data_dir)

# =========================
# VIS HELPERS
# =========================
def create_role_bar_chart(rows):
    if not rows:
        return go.Figure()
    df = pd.DataFrame(rows).sort_values("score", ascending=True)
    fig = go.Figure()
    fig.add_trace(go.Bar(y=df["title"], x=df["base_score"] * 100, name="Fit", orientation="h",
                         marker=dict(color="#1f77b4")))
    fig.add_trace(go.Bar(y=df["title"], x=df["profile_bonus"] * 100, name="Profile bonus", orientation="h",
                         marker=dict(color="#ff7f0e")))
    fig.update_layout(barmode="stack", title="Role fit", xaxis_title="Percentage",
                      xaxis=dict(range=[0, 100]), height=max(300, len(df) * 60))
    return fig

def _goto(step: int):
    st.session_state["step"] = step

def _toggle(key: str, item: str, limit: int, what: str):
    chosen = st.session_state[key]
    if item in chosen:
        chosen.remove(item)
    elif len(chosen) >= limit:
        st.warning(f"Pick up to {limit} {what}.")
    else:
        chosen.append(item)

# =========================
# LOAD DATA
# =========================
try:
    catalog = read_catalog_cached(str(SETTINGS.data_dir))
except (FileNotFoundError, ValueError) as e:
    st.error(f"Could not load the catalog from {SETTINGS.data_dir}: {e}")
    st.stop()

pa_titles = {pid: catalog.pa_title(pid) for pid in catalog.pas}

st.markdown("# 🧭 Program builder")
st.caption("Build a learning plan aligned to WHO EPHFs and practice activities.")
st.divider()

step = st.session_state["step"]

# ---- Step 0: audience ----
if step == 0:
    st.subheader("Who are you building this for?")
    choice = st.radio("Audience", list(AUDIENCES), format_func=AUDIENCES.get,
                      index=list(AUDIENCES).index(st.session_state["audience"]) if st.session_state["audience"] else 0)
    if st.button("Next", type="primary"):
        st.session_state["audience"] = choice
        _goto(1)
        st.rerun()

# ---- Step 1: EPHFs ----
elif step == 1:
    st.caption("Step 1 of 3")
    st.subheader(f"Which EPHFs best describe your focus? (Pick up to {SETTINGS.max_ephfs})")
    cols = st.columns(3)
    for i, eid in enumerate(sorted(catalog.ephfs)):
        with cols[i % 3]:
            selected = eid in st.session_state["ephf_selected"]
            if st.button(("✅ " if selected else "") + catalog.ephf_label(eid), key=f"ephf_{eid}",
                         use_container_width=True):
                _toggle("ephf_selected", eid, SETTINGS.max_ephfs, "EPHFs")
                st.rerun()
    b1, b2 = st.columns(2)
    with b1:
        if st.button("Back"):
            _goto(0)
            st.rerun()
    with b2:
        if st.button("Next", type="primary"):
            if not st.session_state["ephf_selected"]:
                st.warning("Please choose at least one EPHF.")
            else:
                _goto(2)
                st.rerun()

# ---- Step 2: PAs ----
elif step == 2:
    st.caption("Step 2 of 3")
    st.subheader(f"Which practice activities do you want to include? (Pick up to {SETTINGS.max_pas})")

    show_all = st.toggle(f"Show all {len(catalog.pas)} PAs", value=st.session_state["show_all_pas"])
    st.session_state["show_all_pas"] = show_all
    items = all_pas(catalog.pas) if show_all else recommend_pas(st.session_state["ephf_selected"], catalog.ephf_to_pas)
    items = search_pas(st.text_input("Search practice activities..."), items, pa_titles)
    st.caption("Showing all PAs" if show_all else "Recommended for your EPHFs")

    for it in items:
        pid = it["id"]
        selected = pid in st.session_state["pa_selected"]
        label = ("✅ " if selected else "") + pa_titles.get(pid, pid)
        if not show_all and it["score"] > 0:
            label += f"  ·  overlaps: {it['score']}"
        if st.button(label, key=f"pa_{pid}", use_container_width=True):
            _toggle("pa_selected", pid, SETTINGS.max_pas, "practice activities")
            st.rerun()

    picked = ", ".join(pa_titles.get(p, p) for p in st.session_state["pa_selected"]) or "None yet"
    st.caption(f"Selected: {picked}")

    b1, b2 = st.columns(2)
    with b1:
        if st.button("Back"):
            _goto(1)
            st.rerun()
    with b2:
        if st.button("Finish", type="primary"):
            if not st.session_state["pa_selected"]:
                st.warning("Please choose at least one practice activity.")
            else:
                _goto(3)
                st.rerun()

# ---- Step 3: results ----
else:
    audience = st.session_state["audience"] or "learner"
    ephfs = st.session_state["ephf_selected"]
    pas = st.session_state["pa_selected"]

    with st.sidebar:
        st.header("Fit criteria")
        profiles = sorted({p for r in catalog.roles for p in r.profiles})
        styles = sorted({s for r in catalog.roles for s in r.role_style})
        profile_id = st.selectbox("Workforce profile", ["—"] + profiles)
        role_style = st.selectbox("Preferred role style", ["—"] + styles)
        policy = st.selectbox("Plan bucketing", [b.value for b in BucketPolicy],
                              index=[b for b in BucketPolicy].index(AUDIENCE_POLICY[audience]))

    criteria = {}
    if profile_id != "—":
        criteria["profile"] = profile_id
    if role_style != "—":
        criteria["role_style"] = role_style
    profile = build_profile(ephfs, pas, criteria=criteria)

    st.subheader("Your learning plan")
    c1, c2, c3 = st.columns(3)
    with c1: st.metric("Audience", audience)
    with c2: st.metric("EPHFs", len(ephfs))
    with c3: st.metric("PAs", len(pas))
    st.write("**Selected EPHFs:** " + ", ".join(catalog.ephf_label(e) for e in ephfs))
    st.write("**Selected PAs:** " + "; ".join(pa_titles.get(p, p) for p in pas))

    tab_roles, tab_plan, tab_rec = st.tabs(["🎯 Roles", "📚 Curricular guide", "💡 Recommended PAs"])

    with tab_roles:
        rows = rank_roles(profile, catalog.roles, catalog.scoring, top=SETTINGS.top_roles)
        if rows:
            st.plotly_chart(create_role_bar_chart(rows), use_container_width=True)
            st.dataframe(pd.DataFrame(rows)[["title", "score", "fit", "matched_ephfs"]],
                         hide_index=True, use_container_width=True)
        else:
            st.info("No roles in the catalog.")

    with tab_plan:
        plan = build_plan(pas, catalog.pas, policy=policy)
        st.caption(f"Total items: {plan.total}. Split below into core vs specialized.")
        cap = SETTINGS.display_cap
        core_col, spec_col = st.columns(2)
        with core_col:
            st.markdown(f"#### Core — {len(plan.core)}")
            for r in plan.core[:cap]:
                st.markdown(f"- {r.text} _(from {', '.join(r.pas)})_")
            if len(plan.core) > cap:
                st.caption(f"+{len(plan.core) - cap} more")
        with spec_col:
            st.markdown(f"#### Specialized — {len(plan.specialized)}")
            for r in plan.specialized[:cap]:
                st.markdown(f"- {r.text} _(ticks: {r.checkmarks}, from {', '.join(r.pas)})_")
            if len(plan.specialized) > cap:
                st.caption(f"+{len(plan.specialized) - cap} more")

        st.markdown("#### Profile-specific tasks")
        tasks = profile_tasks(pas, catalog.pas, criteria.get("profile"))
        if tasks:
            for t in tasks:
                st.markdown(f"- **{pa_titles.get(t['pa'], t['pa'])}**: {t['task']}")
        else:
            st.caption("Pick a workforce profile in the sidebar to see its tasks.")

        st.download_button("Download CSV", data=plan_to_csv(plan), file_name="learning_plan.csv",
                           mime="text/csv")

    with tab_rec:
        for r in recommend_pas(ephfs, catalog.ephf_to_pas)[:10]:
            badge = " · selected" if r["id"] in pas else ""
            st.markdown(f"- {pa_titles.get(r['id'], r['id'])} — overlaps: {r['score']}{badge}")

    if st.button("Back"):
        _goto(2)
        st.rerun()
