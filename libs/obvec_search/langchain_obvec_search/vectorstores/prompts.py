"""Prompt templates for retrieval-augmented generation."""

from langchain_core.prompts import PromptTemplate

CONTEXT_SEPARATOR = "\n---\n"

RAG_PROMPT = PromptTemplate.from_template(
    "Context:\n{context}\n---\nQuestion: {question}\n---\nAnswer:"
)

# Hypothetical Document Embeddings: https://arxiv.org/abs/2212.10496
HYDE_PROMPT = PromptTemplate.from_template(
    "Please write a passage to answer the question\n\nQuestion: {question}\n\nPassage:"
)
