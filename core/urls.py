from django.urls import path

import core.views as views

urlpatterns = [
    path('preview-paper', views.preview_paper, name='preview_paper'),
    path('generate-docx', views.generate_docx, name='generate_docx'),
    path('generate-pdf', views.generate_pdf, name='generate_pdf'),
]
