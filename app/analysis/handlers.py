from collections.abc import Callable
from dataclasses import replace

from app.analysis.confidence import mean
from app.analysis.engine import AnalysisEngine
from app.analysis.models import (
    AnalysisType,
    ClassificationResult,
    EntityExtractionResult,
    SentimentResult,
    SummarizationResult,
    TaskResult,
)

CLASSIFICATION_DEFAULT_CONFIDENCE = 0.85
SUMMARIZATION_DEFAULT_CONFIDENCE = 0.90

TaskHandler = Callable[[AnalysisEngine, str], TaskResult]


def handle_entity_extraction(engine: AnalysisEngine, text: str) -> EntityExtractionResult:
    entities = engine.extract_entities(text)
    return EntityExtractionResult(
        entities=entities,
        confidence=mean(entity.confidence for entity in entities),
    )


def handle_classification(engine: AnalysisEngine, text: str) -> ClassificationResult:
    classification = engine.classify(text)
    confidence = classification.confidence
    if confidence is None:
        confidence = CLASSIFICATION_DEFAULT_CONFIDENCE
        classification = replace(classification, confidence=confidence)
    return ClassificationResult(classification=classification, confidence=confidence)


def handle_summarization(engine: AnalysisEngine, text: str) -> SummarizationResult:
    return SummarizationResult(
        summary=engine.summarize(text),
        confidence=SUMMARIZATION_DEFAULT_CONFIDENCE,
    )


def handle_sentiment_analysis(engine: AnalysisEngine, text: str) -> SentimentResult:
    sentiment = engine.analyze_sentiment(text)
    return SentimentResult(sentiment=sentiment, confidence=sentiment.score)


TASK_HANDLERS: dict[AnalysisType, TaskHandler] = {
    AnalysisType.ENTITY_EXTRACTION: handle_entity_extraction,
    AnalysisType.CLASSIFICATION: handle_classification,
    AnalysisType.SUMMARIZATION: handle_summarization,
    AnalysisType.SENTIMENT_ANALYSIS: handle_sentiment_analysis,
}
