from .chunking import combine_chunks_for_analysis, extract_citation_chunks, split_sentences

__all__ = ["combine_chunks_for_analysis", "extract_citation_chunks", "split_sentences"]
