from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse

from safira.api.schemas import RenderRequest, SampleResponse, TemplateListResponse
from safira.contexts.intake import sample_cv
from safira.contexts.rendering.service import RenderingService
from safira.utils.text_processing import cv_filename

router = APIRouter()


def get_rendering_service(request: Request) -> RenderingService:
    return request.app.state.rendering_service


@router.get("/templates", response_model=TemplateListResponse)
def list_templates(service: RenderingService = Depends(get_rendering_service)):
    return TemplateListResponse(templates=[t.to_dict() for t in service.list_templates()])


@router.post("/generate")
async def generate(body: RenderRequest, service: RenderingService = Depends(get_rendering_service)):
    pdf = await service.generate(body.cvData, body.template)

    # generate() has already validated the identity fields
    info = body.cvData["personalInfo"]
    filename = cv_filename(str(info["firstName"]), str(info["lastName"]))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(pdf)),
        },
    )


@router.post("/preview", response_class=HTMLResponse)
async def preview(body: RenderRequest, service: RenderingService = Depends(get_rendering_service)):
    html = await service.preview(body.cvData, body.template)
    return HTMLResponse(content=html)


@router.get("/sample", response_model=SampleResponse)
def sample():
    return SampleResponse(
        sampleCV=sample_cv(),
        usage={
            "generate": 'POST /cv/generate with { template: "classic", cvData: sampleCV }',
            "preview": 'POST /cv/preview with { template: "classic", cvData: sampleCV }',
        },
    )
