# arw/agents/defaults.py
from __future__ import annotations
import json
from pathlib import Path
from typing import List

from pydantic import TypeAdapter

from agents.models import AgentSpec

_AGENT_LIST = TypeAdapter(List[AgentSpec])

# Default TFDA medical-device review pipeline, run in this order.
_DEFAULT_AGENTS = [
    {
        "id": "1",
        "name": "1. 申請資料提取器 (Extraction)",
        "description": "提取基本行政資料、廠商資訊、證書細節。",
        "system_prompt": "你是一位專業的醫療器材法規專家。請從文件中提取關鍵行政資訊：廠商名稱、地址、產品名稱、類別、證書編號、日期。若有不確定資訊請標註。輸出為Markdown表格。",
        "user_prompt": "分析文件並提取申請基本資料：",
        "model": "gemini-2.5-flash",
        "temperature": 0,
        "max_tokens": 2000,
    },
    {
        "id": "2",
        "name": "2. 適應症與禁忌症分析 (Clinical)",
        "description": "分析產品適應症、禁忌症及副作用。",
        "system_prompt": "你是臨床醫學專家。請分析文件的：1. 適應症 (Indications) 2. 禁忌症 (Contraindications) 3. 副作用與警語。請用列點方式呈現，並標註風險等級。",
        "user_prompt": "請分析以下內容的臨床相關資訊：",
        "model": "gemini-2.5-flash",
        "temperature": 0.3,
        "max_tokens": 1500,
    },
    {
        "id": "3",
        "name": "3. 技術規格與檢驗摘要 (Technical)",
        "description": "摘要產品技術規格、檢驗標準與測試結果。",
        "system_prompt": "你是生醫工程專家。請摘要：1. 產品技術規格 2. 已進行的測試項目 (如生物相容性、電性安全) 3. 檢驗結果摘要。忽略過於瑣碎的數據，只抓重點。",
        "user_prompt": "請摘要技術規格與檢驗結果：",
        "model": "gemini-2.5-flash",
        "temperature": 0.2,
        "max_tokens": 1500,
    },
    {
        "id": "4",
        "name": "4. 法規符合性檢查 (Compliance)",
        "description": "根據TFDA要求檢查文件完整性與合規性。",
        "system_prompt": "你是資深法規稽核員。根據前述資訊與原文，檢查：1. 是否符合醫療器材分類分級規定？ 2. 標示是否包含必要警語？ 3. 是否有明顯缺漏文件？提供審查建議。",
        "user_prompt": "請進行法規符合性檢查並提供建議：",
        "model": "gemini-2.5-flash",
        "temperature": 0.4,
        "max_tokens": 1500,
    },
    {
        "id": "5",
        "name": "5. 綜合審查報告生成 (Reporting)",
        "description": "整合所有分析，生成最終審查報告。",
        "system_prompt": "你是審查報告主筆。請根據上下文提供的所有分析結果，撰寫一份結構完整的「醫療器材查驗登記審查報告」。包含：摘要、產品描述、臨床評估、技術評估、結論與建議。",
        "user_prompt": "請撰寫綜合審查報告：",
        "model": "gemini-2.5-flash",
        "temperature": 0.5,
        "max_tokens": 3000,
    },
]

def default_agents() -> List[AgentSpec]:
    """Fresh copies of the default pipeline (reset-to-default)."""
    return _AGENT_LIST.validate_python(_DEFAULT_AGENTS)

def load_agents(path: str | Path) -> List[AgentSpec]:
    """Read a user-edited agent list (JSON array). Order in the file is execution order."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Agents file not found: {p}")
    return _AGENT_LIST.validate_json(p.read_text(encoding="utf-8"))

def save_agents(agents: List[AgentSpec], path: str | Path) -> str:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    data = [a.model_dump() for a in agents]
    p.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    return str(p)
