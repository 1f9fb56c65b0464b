from .analyze_usecase import AnalyzeUseCase, AnalyzeUseCaseError
from .generate_usecase import GenerateUseCase, GenerateUseCaseError

__all__ = ["AnalyzeUseCase", "AnalyzeUseCaseError", "GenerateUseCase", "GenerateUseCaseError"]
