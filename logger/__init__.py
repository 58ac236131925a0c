from logger.logger import Logger
