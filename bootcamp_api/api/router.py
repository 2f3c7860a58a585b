from fastapi import APIRouter
from bootcamp_api.api import auth, bootcamps, courses

router = APIRouter()
router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(bootcamps.router, prefix="/bootcamps", tags=["Bootcamps"])
router.include_router(courses.bootcamp_courses_router, prefix="/bootcamps/{bootcamp_id}/courses", tags=["Courses"])
router.include_router(courses.router, prefix="/courses", tags=["Courses"])
