"""
Default showcase entries inserted into an empty store at startup.
"""

from __future__ import annotations

import logging

from showcase.db import PortfolioDb
from showcase.models import Category, EntryDraft, LegacyImage

logger = logging.getLogger(__name__)


def _entry(title, description, image, url, category, tags, featured=True):
    return EntryDraft(
        title=title,
        description=description,
        category=category.value,
        tags=list(tags),
        url=url,
        featured=featured,
        image=LegacyImage(image),
    )


DEFAULT_ENTRIES = [
    _entry(
        "규정 문서 AI 챗봇",
        "PDF, Word 파일 지원 및 자연어 처리를 통해 복잡한 규정 내용을 이해하고 "
        "정확한 답변을 제공하는 실시간 챗봇.",
        "규정 문서 AI 챗봇.png",
        "https://regulation-ai-chatbot.vercel.app/",
        Category.AI_ML,
        ["AI", "NLP"],
    ),
    _entry(
        "HR 지원센터",
        "인사관리 전반에 특화된 AI 시스템. 채용, 평가, 교육, 복리후생, 노무관리 "
        "업무 자동화 및 효율성 극대화.",
        "HR 지원센터.png",
        "https://hr-chatbot-five.vercel.app/",
        Category.ENTERPRISE,
        ["HR", "AI"],
    ),
    _entry(
        "스마트팩토리 대시보드",
        "실시간 IoT 데이터 통합 및 네트워크 토폴로지 시각화. MES-7000, SCADA-8800 "
        "시스템 연동으로 효율성 추적.",
        "스마트팩토리 네트워크 대시보드.png",
        "https://smart-factory-network-dashboard.vercel.app/",
        Category.IOT,
        ["IoT", "실시간"],
    ),
    _entry(
        "API Hub",
        "API 디스커버리 엔진과 통합 API 관리 시스템. 카테고리, 제공자, 가격 정책별 "
        "API 검색 및 개발자 친화적 환경.",
        "API 허브.png",
        "https://apihub.world/",
        Category.PLATFORM,
        ["API", "플랫폼"],
    ),
    _entry(
        "LawChat AI",
        "전문 분야별 법률 AI와 법률 문서 자동 생성 시스템. 민사, 형사, 가족법 등 "
        "특화 AI 및 전문가 연결 서비스.",
        "LawChat.png",
        "https://lawchat-ai.fly.dev/",
        Category.AI_ML,
        ["법률", "AI"],
    ),
    _entry(
        "LLM Bench",
        "대규모 언어모델 벤치마킹 플랫폼. Llama, Mistral, SOLAR 등 주요 모델 성능 "
        "비교 및 시각화 대시보드.",
        "LLM Bench.png",
        "https://llm-bench.vercel.app/",
        Category.BENCHMARK,
        ["LLM", "분석"],
    ),
    _entry(
        "OCR 벤치마크 플랫폼",
        "Tesseract, Google Vision, GPT-4o 등 주요 OCR 서비스와 AI 모델의 성능을 "
        "종합적으로 비교 분석하는 플랫폼.",
        "OCR 벤치마크 플랫폼.png",
        "http://ocr-benchmark.info/",
        Category.OCR,
        ["OCR", "분석"],
    ),
    _entry(
        "CoDAi",
        "지능형 데이터 통합 및 변환 플랫폼. AI 기반 데이터 정규화 및 ERP 시스템 "
        "연동으로 디지털 트랜스포메이션 지원.",
        "Codai.png",
        "https://aicodai.com/",
        Category.DATA,
        ["데이터", "ERP"],
    ),
    _entry(
        "CULF AI",
        "AI 기반 콘텐츠 큐레이션 서비스. 개인화 알고리즘과 멀티모달 콘텐츠 처리로 "
        "맞춤형 정보 추천 제공.",
        "Culf.png",
        "https://culf.ai/",
        Category.AI_ML,
        ["큐레이션", "AI"],
        featured=False,
    ),
]


def seed_default_entries(db: PortfolioDb) -> int:
    """Insert the default entries when the store is empty. Returns rows inserted."""
    try:
        if db.count_entries() > 0:
            return 0
        inserted = db.insert_many(DEFAULT_ENTRIES)
    except Exception:
        logger.exception("Failed to seed default portfolio entries")
        return 0
    logger.info("Seeded %d default portfolio entries", inserted)
    return inserted
