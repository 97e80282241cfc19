# arw/tools/ocr_mock.py
from __future__ import annotations
from pathlib import Path
from typing import Union

TEXT_SUFFIXES = {".txt", ".md", ".markdown"}

# Simulated OCR output for the demo application
MOCK_OCR_TEXT = """
--- PAGE 1 ---
醫療器材查驗登記申請書
申請日期：2024年01月15日
申請商名稱：未來生醫科技有限公司
地址：台北市南港區軟體園區街1號10樓
產品名稱（中文）："未來" 智慧型心律調節器
產品名稱（英文）："Future" Smart Pacemaker
型號：FP-2000, FP-2000 Pro
分類分級：I.1234 心臟血管外科裝置 - 第三等級 (Class III)
製造廠名稱：Future MedTech Inc.
製造廠地址：123 Innovation Drive, Silicon Valley, CA, USA

--- PAGE 2 ---
適應症 (Indications):
本產品適用於治療心跳過緩 (Bradycardia) 之病患，包括病竇症候群 (Sick Sinus Syndrome) 及房室傳導阻滯 (AV Block)。
本產品具備藍牙連線功能，可搭配特定App進行遠端監測。

禁忌症 (Contraindications):
1. 已知對鈦合金或聚合物過敏之病患。
2. 預計進行核磁共振 (MRI) 掃描之病患，除非確認為MRI Conditional模式。
3. 具有嚴重精神疾病無法配合醫囑者。

--- PAGE 3 ---
技術規格 (Technical Specifications):
- 電池壽命：約 10-12 年
- 體積：15cc
- 重量：25g
- 導線接頭：IS-1 標準接頭

安全性測試 (Safety Testing):
依據 IEC 60601-1 進行電性安全測試：合格 (Pass)
依據 ISO 10993 進行生物相容性測試：
- 細胞毒性：無反應
- 致敏性：無反應
- 刺激性：無反應

--- PAGE 4 ---
臨床評估摘要：
本產品引用同等品比較 (Predicate Device)，與已上市之 K123456 號產品具備實質等同性。
無新增之重大臨床風險。
"""

def extract_text(filename: str, data: Union[bytes, str, None] = None) -> str:
    """
    Mock extraction:
      - .txt/.md uploads are decoded and returned as-is
      - anything else (PDF, scans) returns the simulated OCR text
    If `data` is None the file is read from disk.
    """
    suffix = Path(filename).suffix.lower()
    if suffix not in TEXT_SUFFIXES:
        return MOCK_OCR_TEXT
    if data is None:
        return Path(filename).read_text(encoding="utf-8")
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
