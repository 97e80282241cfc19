# arw/apps/ui/app.py
from __future__ import annotations
import json
from typing import Any, Dict, Iterator, List

import requests
import streamlit as st

from agents.config import API_URL
from reporting.metrics import metrics_frame, metrics_from_records, summarize
from reporting.review_card import DEFAULT_NOTES, add_to_notes

st.set_page_config(page_title="Agentic Review Workbench", layout="wide")

st.title("🩺 Agentic Review Workbench")
st.caption("Intelligent document analysis & data extraction")

ss = st.session_state
ss.setdefault("ocr_text", "")
ss.setdefault("file_name", "")
ss.setdefault("agents", None)
ss.setdefault("outputs", [])
ss.setdefault("metrics", [])
ss.setdefault("notes", DEFAULT_NOTES)

with st.sidebar:
    st.markdown("### Settings")
    api_url = st.text_input("API URL", API_URL)
    api_key = st.text_input("Gemini API key", type="password")
    st.caption("Leave empty to use GEMINI_API_KEY on the API server.")

def _load_agents() -> List[Dict[str, Any]]:
    resp = requests.get(f"{api_url}/agents", timeout=30)
    resp.raise_for_status()
    return resp.json()

def run_events(payload: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    with requests.post(f"{api_url}/run/stream", json=payload, stream=True, timeout=None) as resp:
        if resp.status_code != 200:
            raise RuntimeError(f"API error: {resp.status_code} {resp.text}")
        for raw in resp.iter_lines():
            if raw:
                yield json.loads(raw.decode("utf-8"))

if ss["agents"] is None:
    try:
        ss["agents"] = _load_agents()
    except Exception as e:
        st.error(f"Error calling API: {e}")
        ss["agents"] = []

tabs = st.tabs(["1. Upload & OCR", "2. Preview & Edit", "3. Agent Config",
                "4. Execute", "5. Dashboard", "6. Notes"])

# ---------------- Tab 1: Upload ----------------
with tabs[0]:
    st.subheader("Upload document")
    uploaded = st.file_uploader("PDF or text", type=["pdf", "txt", "md"])
    if uploaded and st.button("Start OCR (Simulated)"):
        try:
            files = {"file": (uploaded.name, uploaded.getvalue())}
            resp = requests.post(f"{api_url}/extract", files=files, timeout=120)
            if resp.status_code != 200:
                st.error(f"Extract failed: {resp.status_code} {resp.text}")
            else:
                data = resp.json()
                ss["ocr_text"] = data["text"]
                ss["file_name"] = data["filename"]
                st.success(f"Extracted {data['chars']} characters from {data['filename']}")
        except Exception as e:
            st.error(f"Error calling API: {e}")

# ---------------- Tab 2: Preview ----------------
with tabs[1]:
    st.subheader("Extracted text")
    ss["ocr_text"] = st.text_area("Edit before running the agents", ss["ocr_text"], height=400)
    if st.button("Clear Context"):
        ss["ocr_text"] = ""

# ---------------- Tab 3: Agents ----------------
with tabs[2]:
    st.subheader("Agent Pipeline Configuration")
    if st.button("Reset to Default"):
        ss["agents"] = _load_agents()
    for idx, agent in enumerate(ss["agents"]):
        with st.expander(agent["name"], expanded=False):
            st.caption(f"{agent['description']} • {agent['model']}")
            agent["name"] = st.text_input("Name", agent["name"], key=f"name_{idx}")
            agent["system_prompt"] = st.text_area("System prompt", agent["system_prompt"], key=f"sys_{idx}")
            agent["user_prompt"] = st.text_area("User prompt", agent["user_prompt"], key=f"usr_{idx}")
            c1, c2 = st.columns(2)
            agent["temperature"] = c1.slider("Temperature", 0.0, 1.0, float(agent["temperature"]), 0.1, key=f"t_{idx}")
            agent["max_tokens"] = int(c2.number_input("Max tokens", 1, 8192, int(agent["max_tokens"]), key=f"mt_{idx}"))

# ---------------- Tab 4: Execute ----------------
with tabs[3]:
    st.subheader("Run all agents")
    agents = ss["agents"]
    if st.button("⚡ Auto-Run All Agents", disabled=not agents):
        payload = {"text": ss["ocr_text"], "agents": agents, "source": ss["file_name"] or "uploaded document"}
        if api_key:
            payload["api_key"] = api_key
        status = st.empty()
        bar = st.progress(0.0)
        slots = [st.empty() for _ in agents]
        try:
            for snap in run_events(payload):
                i = snap["current_step"]
                if snap["running"] and i is not None:
                    status.info(f"Agent #{i + 1} is processing...")
                    bar.progress(len(snap["metrics"]) / len(agents))
                for j, out in enumerate(snap["outputs"]):
                    if out:
                        slots[j].markdown(f"**{agents[j]['name']}**\n\n{out}")
                ss["outputs"] = snap["outputs"]
                ss["metrics"] = snap["metrics"]
            status.success("All agents finished.")
            bar.progress(1.0)
        except Exception as e:
            st.error(f"Client error: {e}")

    for j, out in enumerate(ss["outputs"]):
        if out and j < len(agents) and st.button(f"+ Add to Notes: {agents[j]['name']}", key=f"note_{j}"):
            ss["notes"] = add_to_notes(ss["notes"], out, agents[j]["name"])

# ---------------- Tab 5: Dashboard ----------------
with tabs[4]:
    metrics = ss["metrics"]
    if not metrics:
        st.info("No execution data yet. Run the agents first.")
    else:
        ms = metrics_from_records(metrics)
        s = summarize(ms)
        df = metrics_frame(ms)
        c1, c2, c3 = st.columns(3)
        c1.metric("Total Latency", f"{s.total_latency:.2f}s")
        c2.metric("Total Tokens (est.)", s.total_tokens)
        c3.metric("Avg Latency", f"{s.average_latency:.2f}s/step")
        st.markdown("#### Performance by Agent")
        st.bar_chart(df.set_index("agent_name")["latency"])
        st.dataframe(df, use_container_width=True)

# ---------------- Tab 6: Notes ----------------
with tabs[5]:
    ss["notes"] = st.text_area("Review notes (Markdown)", ss["notes"], height=300)
    st.markdown(ss["notes"])
    st.download_button("Export Notes", ss["notes"], file_name="review_notes.md", mime="text/markdown")
