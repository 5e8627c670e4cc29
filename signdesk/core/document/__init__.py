"""
Document I/O: page rasters, markup overlays and export.
"""
from .pdf_exporter import AnnotationExporter, ExportCancelled
from .pdf_reader import PageRaster, PageRasterSource
from .rasterizer import SceneRasterizer
from .render_worker import RenderWorker

__all__ = [
    'AnnotationExporter',
    'ExportCancelled',
    'PageRaster',
    'PageRasterSource',
    'SceneRasterizer',
    'RenderWorker',
]
