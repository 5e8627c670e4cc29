from .annotation_editor import AnnotationEditor, PageCanvas, annotated_output_path

__all__ = ['AnnotationEditor', 'PageCanvas', 'annotated_output_path']
